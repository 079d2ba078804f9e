"""Unit tests for ConstraintValidator."""

import uuid

import pytest

from socialgraph.errors import UniquenessError, ValidationError
from socialgraph.schemas import EntityKind
from socialgraph.validator import ConstraintValidator, is_reference


@pytest.fixture
def validator(store):
    return ConstraintValidator(store)


def _ref() -> str:
    return str(uuid.uuid4())


class TestPhases:
    """Checks run in a fixed order and the first failing phase wins."""

    @pytest.mark.asyncio
    async def test_valid_account_passes(self, validator, account_payload):
        assert await validator.validate(EntityKind.ACCOUNT, account_payload()) == []

    @pytest.mark.asyncio
    async def test_presence_reported_before_length(self, validator):
        rejected = await validator.validate(
            EntityKind.COMMENT,
            {"post": _ref(), "content": "a" * 500},
        )
        assert [(r.field, r.reason) for r in rejected] == [("user", "missing")]

    @pytest.mark.asyncio
    async def test_all_offending_fields_of_a_phase_are_named(self, validator):
        rejected = await validator.validate(EntityKind.ACCOUNT, {"email": "a@example.com"})
        assert {r.field for r in rejected} == {"external_id", "first_name", "last_name", "username"}
        assert all(r.reason == "missing" for r in rejected)

    @pytest.mark.asyncio
    async def test_empty_string_counts_as_missing(self, validator, account_payload):
        rejected = await validator.validate(EntityKind.ACCOUNT, account_payload(first_name=""))
        assert [(r.field, r.reason) for r in rejected] == [("first_name", "missing")]

    @pytest.mark.asyncio
    async def test_type_checked_before_length(self, validator, account_payload):
        rejected = await validator.validate(
            EntityKind.ACCOUNT,
            account_payload(first_name=123, bio="x" * 500),
        )
        assert [(r.field, r.reason) for r in rejected] == [("first_name", "invalid_type")]

    @pytest.mark.asyncio
    async def test_enum_checked_after_length(self, validator):
        # Notification has no length-bounded fields, so the enum phase reports
        rejected = await validator.validate(
            EntityKind.NOTIFICATION,
            {"from": _ref(), "to": _ref(), "type": "mention"},
        )
        assert [(r.field, r.reason) for r in rejected] == [("type", "not_allowed")]


class TestFormats:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["ops@localhost", "user@intranet", "a b@example.com", "not-an-email"])
    async def test_email_is_any_string(self, graph, account_payload, email):
        account = await graph.entities.create(EntityKind.ACCOUNT, account_payload(email=email))
        assert account.email == email

    @pytest.mark.asyncio
    async def test_email_must_be_string(self, validator, account_payload):
        rejected = await validator.validate(EntityKind.ACCOUNT, account_payload(email=42))
        assert [(r.field, r.reason) for r in rejected] == [("email", "invalid_type")]

    @pytest.mark.asyncio
    async def test_reference_must_be_identifier(self, validator):
        rejected = await validator.validate(EntityKind.POST, {"user": "someone"})
        assert [(r.field, r.reason) for r in rejected] == [("user", "invalid_format")]

    @pytest.mark.asyncio
    async def test_reference_list_items_checked(self, validator, account_payload):
        rejected = await validator.validate(
            EntityKind.ACCOUNT,
            account_payload(followers=[_ref(), "bogus"]),
        )
        assert [(r.field, r.reason) for r in rejected] == [("followers", "invalid_format")]

    @pytest.mark.asyncio
    async def test_reference_list_must_be_list(self, validator):
        rejected = await validator.validate(EntityKind.POST, {"user": _ref(), "likes": _ref()})
        assert [(r.field, r.reason) for r in rejected] == [("likes", "invalid_type")]

    def test_is_reference(self):
        assert is_reference(_ref())
        assert not is_reference("abc")
        assert not is_reference(None)
        assert not is_reference(42)


class TestLengthBounds:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("length,ok", [(160, True), (161, False)])
    async def test_bio(self, validator, account_payload, length, ok):
        rejected = await validator.validate(EntityKind.ACCOUNT, account_payload(bio="b" * length))
        assert (rejected == []) is ok

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", [EntityKind.POST, EntityKind.COMMENT])
    @pytest.mark.parametrize("length,ok", [(280, True), (281, False)])
    async def test_content(self, validator, kind, length, ok):
        fields = {"user": _ref(), "post": _ref(), "content": "c" * length}
        rejected = await validator.validate(kind, fields)
        assert (rejected == []) is ok
        if not ok:
            assert rejected[0].reason == "too_long"

    @pytest.mark.asyncio
    async def test_length_counts_code_points(self, validator):
        rejected = await validator.validate(
            EntityKind.COMMENT,
            {"user": _ref(), "post": _ref(), "content": "🎉" * 280},
        )
        assert rejected == []


class TestUniqueness:
    @pytest.mark.asyncio
    async def test_duplicate_reported(self, validator, graph, account_payload):
        await graph.register_account(account_payload("alice"))

        rejected = await validator.validate(
            EntityKind.ACCOUNT,
            account_payload("bob", email="alice@example.com", username="alice"),
        )
        assert {(r.field, r.reason) for r in rejected} == {
            ("email", "duplicate"),
            ("username", "duplicate"),
        }

    @pytest.mark.asyncio
    async def test_entity_excluded_from_its_own_check(self, validator, graph, account_payload):
        alice = await graph.register_account(account_payload("alice"))

        rejected = await validator.validate(
            EntityKind.ACCOUNT,
            {"username": "alice"},
            partial=True,
            entity_id=alice.id,
        )
        assert rejected == []

    @pytest.mark.asyncio
    async def test_check_raises_uniqueness_error(self, validator, graph, account_payload):
        await graph.register_account(account_payload("alice"))

        with pytest.raises(UniquenessError) as exc_info:
            await validator.check(EntityKind.ACCOUNT, account_payload("bob", external_id="ext_alice"))

        assert exc_info.value.fields == ["external_id"]
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.code == "UNIQUENESS_ERROR"


class TestPartialAndNormalize:
    @pytest.mark.asyncio
    async def test_partial_checks_only_supplied_fields(self, validator):
        assert await validator.validate(EntityKind.ACCOUNT, {"bio": "hi"}, partial=True) == []

        rejected = await validator.validate(EntityKind.ACCOUNT, {"bio": "x" * 161}, partial=True)
        assert [(r.field, r.reason) for r in rejected] == [("bio", "too_long")]

    @pytest.mark.asyncio
    async def test_partial_cannot_clear_required_field(self, validator):
        rejected = await validator.validate(EntityKind.ACCOUNT, {"username": None}, partial=True)
        assert [(r.field, r.reason) for r in rejected] == [("username", "missing")]

    def test_normalize_maps_aliases_and_drops_unknown(self, validator):
        fields = validator.normalize(
            EntityKind.ACCOUNT,
            {
                "externalId": "ext_1",
                "firstName": "Ada",
                "last_name": "Lovelace",
                "createdAt": "2020-01-01",
                "isAdmin": True,
            },
        )
        assert fields == {"external_id": "ext_1", "first_name": "Ada", "last_name": "Lovelace"}

    def test_normalize_notification_wire_names(self, validator):
        a, b = _ref(), _ref()
        fields = validator.normalize(EntityKind.NOTIFICATION, {"from": a, "to": b, "type": "follow"})
        assert fields == {"from_user": a, "to_user": b, "type": "follow"}

    def test_check_reference(self, validator):
        validator.check_reference("likes", _ref())
        with pytest.raises(ValidationError) as exc_info:
            validator.check_reference("likes", "nope")
        assert exc_info.value.fields == ["likes"]
