"""Seed members, waitlist entries and invitations through the service client.

Every helper returns a record carrying a `clean_up()` callable that removes
what it created, so fixtures can pair seeding with teardown.
"""
from __future__ import annotations

import logging
import random
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

from faker import Faker

from membership_e2e.auth_state import sign_in_with_password
from membership_e2e.clients import get_stripe_client, get_supabase_service_client
from membership_e2e.config import settings

logger = logging.getLogger(__name__)

fake = Faker("en_IE")

PRONOUNS = ["he/him", "she/her", "they/them"]
GENDERS = ["man (cis)", "woman (cis)", "non-binary"]
WEAPONS = ["longsword", "rapier", "sabre"]
MEDICAL_CONDITIONS = ["None", "Asthma", "Previous knee injury"]

# Stripe test IBAN that always succeeds for SEPA debits
SUCCESSFUL_IBAN = "IE29AIBK93115212345678"

_BASE36 = string.digits + string.ascii_lowercase


class SeedingError(RuntimeError):
    """Raised when a seeding rpc/auth call returns no usable data."""


def create_unique_email(prefix: str, index: Optional[int] = None) -> str:
    """`<prefix>-<epoch ms>-<6 base36 chars>[-<index>]@test.com`, lowercased."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    index_part = f"-{index}" if index is not None else ""
    return f"{prefix}-{timestamp}-{suffix}{index_part}@test.com".lower()


@dataclass
class FakePerson:
    first_name: str
    last_name: str
    email: str
    date_of_birth: date
    pronouns: str
    gender: str
    weapon: str
    phone_number: str
    next_of_kin: Dict[str, str]
    medical_conditions: str

    def waitlist_params(self) -> Dict[str, Any]:
        """Arguments for the `insert_waitlist_entry` rpc."""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "date_of_birth": self.date_of_birth.isoformat(),
            "phone_number": self.phone_number,
            "pronouns": self.pronouns,
            "gender": self.gender,
            "medical_conditions": self.medical_conditions,
        }


def irish_phone_number() -> str:
    """Irish mobile in international format, e.g. `+353 87 123 4567`."""
    return fake.numerify("+353 8# ### ####")


def fake_person(email: Optional[str] = None) -> FakePerson:
    return FakePerson(
        first_name=fake.first_name(),
        last_name=fake.last_name(),
        email=(email or fake.email()).lower(),
        date_of_birth=fake.date_of_birth(minimum_age=16, maximum_age=65),
        pronouns=random.choice(PRONOUNS),
        gender=random.choice(GENDERS),
        weapon=random.choice(WEAPONS),
        phone_number=irish_phone_number(),
        next_of_kin={"name": fake.name(), "phone_number": irish_phone_number()},
        medical_conditions=random.choice(MEDICAL_CONDITIONS),
    )


def _first_row(response: Any, what: str) -> Any:
    data = getattr(response, "data", response)
    if isinstance(data, list):
        if not data:
            raise SeedingError(f"{what} returned no rows")
        return data[0]
    if data is None:
        raise SeedingError(f"{what} returned no data")
    return data


def _create_auth_user(client, email: str, user_metadata: Optional[Dict[str, Any]] = None):
    attributes: Dict[str, Any] = {
        "email": email,
        "password": settings.default_password,
        "email_confirm": True,
    }
    if user_metadata:
        attributes["user_metadata"] = user_metadata
    response = client.auth.admin.create_user(attributes)
    if not response or not response.user:
        raise SeedingError(f"Error creating auth user for {email}")
    return response.user


@dataclass
class WaitlistedUser(FakePerson):
    waitlist_id: str
    profile_id: str
    user_id: str
    token: Optional[str]
    _cleanup: Callable[[], None] = field(default=lambda: None, repr=False)

    def clean_up(self) -> None:
        self._cleanup()


@dataclass
class Member(FakePerson):
    waitlist_id: str
    profile_id: str
    user_id: str
    member_id: Any
    roles: Set[str]
    session: Any
    customer_id: Optional[str] = None
    _cleanup: Callable[[], None] = field(default=lambda: None, repr=False)

    def clean_up(self) -> None:
        self._cleanup()


@dataclass
class StripeCustomerFixture:
    customer_id: str
    subscription_id: str
    payment_method_id: str

    def clean_up(self) -> None:
        get_stripe_client().Customer.delete(self.customer_id)


@dataclass
class InvitedUser(FakePerson):
    invitation_id: Optional[str]
    user_id: str
    customer_id: str
    invitation_status: str
    _cleanup: Callable[[], None] = field(default=lambda: None, repr=False)

    def token(self) -> str:
        """Access token for the invited user (signs in on every call)."""
        session = sign_in_with_password(self.email)
        if not getattr(session, "access_token", None):
            raise SeedingError("Failed to get access token")
        return session.access_token

    def clean_up(self) -> None:
        self._cleanup()


def setup_waitlisted_user(
    add_waitlist: bool = True,
    add_supabase_id: bool = True,
    set_waitlist_not_completed: bool = False,
    email: Optional[str] = None,
) -> WaitlistedUser:
    """Create a waitlist entry whose profile is linked to a confirmed auth user."""
    person = fake_person(email)
    client = get_supabase_service_client()

    entry = _first_row(
        client.rpc("insert_waitlist_entry", person.waitlist_params()).execute(),
        "insert_waitlist_entry",
    )
    user = _create_auth_user(client, person.email)

    def clean_up() -> None:
        service = get_supabase_service_client()
        service.table("user_profiles").delete().eq("id", entry["profile_id"]).execute()
        service.auth.admin.delete_user(user.id)

    try:
        client.table("user_profiles").update(
            {
                "supabase_user_id": user.id if add_supabase_id else None,
                "waitlist_id": entry["waitlist_id"] if add_waitlist else None,
            }
        ).eq("id", entry["profile_id"]).execute()

        client.table("waitlist").update(
            {"status": "cancelled" if set_waitlist_not_completed else "completed"}
        ).eq("email", person.email).execute()

        session = sign_in_with_password(person.email)
    except Exception:
        logger.error("Seeding waitlisted user %s failed, removing partial records", person.email)
        clean_up()
        raise

    return WaitlistedUser(
        **vars(person),
        waitlist_id=entry["waitlist_id"],
        profile_id=entry["profile_id"],
        user_id=user.id,
        token=session.access_token,
        _cleanup=clean_up,
    )


def create_stripe_customer_with_subscription(email: str) -> StripeCustomerFixture:
    """Customer with a default SEPA method, subscribed to the monthly and annual fees."""
    stripe = get_stripe_client()

    customer = stripe.Customer.create(email=email, metadata={"source": "test"})
    try:
        payment_method = stripe.PaymentMethod.create(
            type="sepa_debit",
            sepa_debit={"iban": SUCCESSFUL_IBAN},
            billing_details={"email": email, "name": "Test User"},
        )
        stripe.PaymentMethod.attach(payment_method.id, customer=customer.id)
        stripe.Customer.modify(
            customer.id,
            invoice_settings={"default_payment_method": payment_method.id},
        )

        subscription = None
        for lookup_key in (settings.membership_fee_lookup, settings.annual_fee_lookup):
            price_id = find_price_id(lookup_key)
            subscription = stripe.Subscription.create(
                customer=customer.id,
                items=[{"price": price_id}],
                default_payment_method=payment_method.id,
                expand=["latest_invoice.payments"],
            )
    except Exception:
        stripe.Customer.delete(customer.id)
        raise

    return StripeCustomerFixture(
        customer_id=customer.id,
        subscription_id=subscription.id,
        payment_method_id=payment_method.id,
    )


def find_price_id(lookup_key: str) -> str:
    prices = get_stripe_client().Price.search(query=f"lookup_key:'{lookup_key}'")
    if not prices.data:
        raise SeedingError(f"No price found with lookup key: {lookup_key}")
    return prices.data[0].id


def create_member(
    email: Optional[str] = None,
    roles: Iterable[str] = ("member",),
    create_subscription: bool = False,
) -> Member:
    """Create a fully registered member holding `roles`.

    The implicit `member` role is not stored in user_roles; every other role is.
    """
    role_set = set(roles)
    person = fake_person(email)
    client = get_supabase_service_client()

    entry = _first_row(
        client.rpc("insert_waitlist_entry", person.waitlist_params()).execute(),
        "insert_waitlist_entry",
    )
    user = _create_auth_user(client, person.email)

    stripe_fixture: Optional[StripeCustomerFixture] = None

    def clean_up() -> None:
        service = get_supabase_service_client()
        service.table("member_profiles").delete().eq("user_profile_id", entry["profile_id"]).execute()
        service.table("user_profiles").delete().eq("id", entry["profile_id"]).execute()
        service.auth.admin.delete_user(user.id)
        if stripe_fixture:
            stripe_fixture.clean_up()

    try:
        if create_subscription:
            stripe_fixture = create_stripe_customer_with_subscription(person.email)
        registration = _register_member(client, person, entry, user.id, role_set, stripe_fixture)
        session = sign_in_with_password(person.email)
    except Exception:
        logger.error("Seeding member %s failed, removing partial records", person.email)
        clean_up()
        raise

    logger.info("Seeded member %s with roles %s", person.email, sorted(role_set))

    return Member(
        **vars(person),
        waitlist_id=entry["waitlist_id"],
        profile_id=entry["profile_id"],
        user_id=user.id,
        member_id=registration.data,
        roles=role_set,
        session=session,
        customer_id=stripe_fixture.customer_id if stripe_fixture else None,
        _cleanup=clean_up,
    )


def _register_member(client, person: FakePerson, entry, user_id: str, role_set: Set[str], stripe_fixture):
    client.table("user_profiles").update(
        {
            "supabase_user_id": user_id,
            "waitlist_id": entry["waitlist_id"],
            "customer_id": stripe_fixture.customer_id if stripe_fixture else None,
        }
    ).eq("id", entry["profile_id"]).execute()

    extra_roles = sorted(role for role in role_set if role != "member")
    if extra_roles:
        client.table("user_roles").insert(
            [{"user_id": user_id, "role": role} for role in extra_roles]
        ).execute()

    client.table("waitlist").update({"status": "completed"}).eq("email", person.email).execute()

    registration = client.rpc(
        "complete_member_registration",
        {
            "v_user_id": user_id,
            "p_next_of_kin_name": person.next_of_kin["name"],
            "p_next_of_kin_phone": person.next_of_kin["phone_number"],
            "p_insurance_form_submitted": True,
        },
    ).execute()

    return registration


def _create_incomplete_subscriptions(customer_id: str) -> List[Any]:
    stripe = get_stripe_client()
    monthly = stripe.Subscription.create(
        customer=customer_id,
        items=[{"price": find_price_id(settings.membership_fee_lookup)}],
        billing_cycle_anchor_config={"day_of_month": 1},
        payment_behavior="default_incomplete",
        payment_settings={"payment_method_types": ["sepa_debit"]},
        expand=["latest_invoice.payments"],
        collection_method="charge_automatically",
    )
    annual = stripe.Subscription.create(
        customer=customer_id,
        items=[{"price": find_price_id(settings.annual_fee_lookup)}],
        billing_cycle_anchor_config={"month": 1, "day_of_month": 7},
        payment_behavior="default_incomplete",
        payment_settings={"payment_method_types": ["sepa_debit"]},
        expand=["latest_invoice.payments"],
        collection_method="charge_automatically",
    )
    return [monthly, annual]


def _payment_intent_id(invoice: Any) -> str:
    return invoice["payments"]["data"][0]["payment"]["payment_intent"]


def _plan_amount(subscription: Any) -> int:
    # subscription.items would resolve to dict.items on a StripeObject
    return subscription["items"]["data"][0]["plan"]["amount"]


def setup_invited_user(
    add_invitation: bool = True,
    add_supabase_id: bool = True,
    email: Optional[str] = None,
    invitation_status: str = "pending",
    use_fake_customer_id: bool = False,
) -> InvitedUser:
    """Create an admin invitation, its Stripe customer and payment session."""
    person = fake_person(email)
    client = get_supabase_service_client()

    user = _create_auth_user(
        client,
        person.email,
        user_metadata={"first_name": person.first_name, "last_name": person.last_name},
    )

    customer_id: Optional[str] = None
    expires_at = datetime.now(timezone.utc) + timedelta(hours=24)

    def clean_up() -> None:
        service = get_supabase_service_client()
        service.table("payment_sessions").delete().eq("user_id", user.id).execute()
        service.table("invitations").delete().eq("email", person.email).execute()
        service.table("user_profiles").delete().eq("supabase_user_id", user.id).execute()
        if customer_id:
            service.table("user_profiles").delete().eq("customer_id", customer_id).execute()
        service.auth.admin.delete_user(user.id)
        if customer_id and not use_fake_customer_id:
            get_stripe_client().Customer.delete(customer_id)

    invitation_id = None
    try:
        if use_fake_customer_id:
            customer_id = f"cus_fake_{secrets.token_hex(8)}"
        else:
            customer_id = get_stripe_client().Customer.create(
                name=f"{person.first_name} {person.last_name}",
                email=person.email,
                metadata={"invited_by": "e2e-test"},
            ).id

        if add_invitation:
            invitation_id = _create_invitation(
                client, person, user.id, customer_id, invitation_status, add_supabase_id, expires_at
            )
            if not use_fake_customer_id:
                _insert_payment_session(client, user.id, customer_id, expires_at)
    except Exception:
        logger.error("Seeding invitation for %s failed, removing partial records", person.email)
        clean_up()
        raise

    return InvitedUser(
        **vars(person),
        invitation_id=invitation_id,
        user_id=user.id,
        customer_id=customer_id,
        invitation_status=invitation_status,
        _cleanup=clean_up,
    )


def _create_invitation(
    client,
    person: FakePerson,
    user_id: str,
    customer_id: str,
    invitation_status: str,
    add_supabase_id: bool,
    expires_at: datetime,
) -> Any:
    invitation = client.rpc(
        "create_invitation",
        {
            "v_user_id": user_id,
            "p_email": person.email,
            "p_first_name": person.first_name,
            "p_last_name": person.last_name,
            "p_date_of_birth": person.date_of_birth.isoformat(),
            "p_phone_number": person.phone_number,
            "p_invitation_type": "admin",
            "p_waitlist_id": None,
            "p_expires_at": expires_at.isoformat(),
            "p_metadata": {},
        },
    ).execute()

    client.table("user_profiles").update({"customer_id": customer_id}).eq(
        "supabase_user_id", user_id
    ).execute()

    if invitation_status != "pending":
        client.table("invitations").update({"status": invitation_status}).eq(
            "email", person.email
        ).execute()

    if not add_supabase_id:
        client.table("user_profiles").update({"supabase_user_id": None}).eq(
            "customer_id", customer_id
        ).execute()

    return invitation.data


def _insert_payment_session(client, user_id: str, customer_id: str, expires_at: datetime) -> None:
    monthly, annual = _create_incomplete_subscriptions(customer_id)
    monthly_invoice = monthly["latest_invoice"]
    annual_invoice = annual["latest_invoice"]
    client.table("payment_sessions").insert(
        {
            "user_id": user_id,
            "monthly_subscription_id": monthly.id,
            "annual_subscription_id": annual.id,
            "monthly_payment_intent_id": _payment_intent_id(monthly_invoice),
            "annual_payment_intent_id": _payment_intent_id(annual_invoice),
            "monthly_amount": _plan_amount(monthly),
            "annual_amount": _plan_amount(annual),
            "total_amount": monthly_invoice["amount_due"] + annual_invoice["amount_due"],
            "expires_at": expires_at.isoformat(),
        }
    ).execute()


def insert_waitlist_entries(count: int, prefix: str = "waitlist-test") -> List[str]:
    """Insert `count` adult waitlist entries and return their emails."""
    client = get_supabase_service_client()
    emails: List[str] = []
    date_of_birth = (date.today() - timedelta(days=365 * 20)).isoformat()
    for index in range(count):
        email = create_unique_email(prefix, index)
        client.rpc(
            "insert_waitlist_entry",
            {
                "first_name": fake.first_name(),
                "last_name": fake.last_name(),
                "email": email,
                "date_of_birth": date_of_birth,
                "pronouns": "they/them",
                "gender": "non-binary",
                "phone_number": irish_phone_number(),
                "medical_conditions": "None",
                "social_media_consent": "no",
            },
        ).execute()
        emails.append(email)
    return emails


def delete_waitlist_entries(emails: Sequence[str]) -> None:
    if not emails:
        return
    client = get_supabase_service_client()
    client.table("waitlist").delete().in_("email", list(emails)).execute()


def clean_up_all(records: Iterable[Any]) -> None:
    """Run every record's clean_up, logging failures so one bad row can't mask the rest."""
    for record in records:
        if record is None:
            continue
        try:
            record.clean_up()
        except Exception as exc:
            logger.error("Cleanup failed for %s: %s", getattr(record, "email", record), exc)
