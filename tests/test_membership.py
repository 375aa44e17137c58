import pytest

from homebase.core.exceptions import Forbidden, InternalError, NotFound, UniqueViolation
from homebase.modules.families.schemas import Family, MemberRole, Membership, PlanTier
from homebase.modules.families.service import MembershipRegistrar


@pytest.fixture
def registrar(store):
    return MembershipRegistrar(store)


def make_family(store, name="Household"):
    return store.insert(Family, {"name": name, "plan_tier": "free"})


def test_ensure_profile_is_get_or_create(registrar, store):
    first = registrar.ensure_profile("user-1", "one@example.com")
    second = registrar.ensure_profile("user-1", "ignored@example.com")

    assert first.id == second.id
    assert first.full_name == "one@example.com"
    assert len(store.rows("profiles")) == 1


def test_ensure_profile_rereads_after_losing_the_insert(registrar, store):
    def competing_insert():
        store.tables["profiles"]["winner"] = {"id": "winner", "user_id": "user-1", "full_name": "Winner"}

    store.hooks[("profiles", "insert")] = competing_insert

    profile = registrar.ensure_profile("user-1", "loser@example.com")

    assert profile.id == "winner"
    assert len(store.rows("profiles")) == 1


def test_first_membership_becomes_default(registrar, store):
    profile = registrar.ensure_profile("user-1")
    first = make_family(store, "First")
    second = make_family(store, "Second")

    a = registrar.grant_membership(profile.id, first.id, MemberRole.owner)
    b = registrar.grant_membership(profile.id, second.id)

    assert a.is_default is True
    assert a.role == MemberRole.owner
    assert b.is_default is False
    assert registrar.get_default_membership(profile.id).id == a.id


def test_grant_membership_is_idempotent(registrar, store):
    profile = registrar.ensure_profile("user-1")
    family = make_family(store)

    a = registrar.grant_membership(profile.id, family.id)
    b = registrar.grant_membership(profile.id, family.id, MemberRole.owner)

    assert a.id == b.id
    assert b.role == MemberRole.member
    assert len(store.rows("family_members")) == 1


def test_concurrent_default_grant_is_downgraded(registrar, store):
    profile = registrar.ensure_profile("user-1")
    ours = make_family(store, "Ours")
    theirs = make_family(store, "Theirs")

    def competing_grant():
        # Lands between our count and our insert
        store.tables["family_members"]["m-theirs"] = {
            "id": "m-theirs", "family_id": theirs.id, "profile_id": profile.id,
            "role": "member", "is_default": True, "created_at": "2025-12-31T00:00:00+00:00",
        }

    store.hooks[("family_members", "insert")] = competing_grant

    membership = registrar.grant_membership(profile.id, ours.id)

    assert membership.is_default is False
    defaults = [m for m in store.rows("family_members") if m["is_default"]]
    assert [m["id"] for m in defaults] == ["m-theirs"]


def test_concurrent_grant_of_same_pair_returns_winner(registrar, store):
    profile = registrar.ensure_profile("user-1")
    family = make_family(store)

    def competing_grant():
        store.tables["family_members"]["m-winner"] = {
            "id": "m-winner", "family_id": family.id, "profile_id": profile.id,
            "role": "member", "is_default": True,
        }

    store.hooks[("family_members", "insert")] = competing_grant

    membership = registrar.grant_membership(profile.id, family.id)

    assert membership.id == "m-winner"
    assert len(store.rows("family_members")) == 1


def test_profile_conflict_without_a_row_to_reread_is_internal(registrar, store):
    store.failures[("profiles", "insert")] = UniqueViolation("profiles: duplicate key")

    with pytest.raises(InternalError):
        registrar.ensure_profile("user-ghost")


def test_bootstrap_creates_owned_free_family(registrar, store):
    profile = registrar.ensure_profile("user-1")

    family = registrar.bootstrap_default_family(profile)

    assert family.plan_tier == PlanTier.free
    assert family.created_by == "user-1"
    membership = registrar.get_membership(profile.id, family.id)
    assert membership.role == MemberRole.owner
    assert membership.is_default is True


def test_bootstrap_twice_keeps_one_family(registrar, store):
    profile = registrar.ensure_profile("user-1")

    first = registrar.bootstrap_default_family(profile)
    second = registrar.bootstrap_default_family(profile)

    assert first.id == second.id
    assert len(store.rows("families")) == 1
    assert len(store.rows("family_members")) == 1


def test_concurrent_bootstrap_converges_on_winner(registrar, store):
    profile = registrar.ensure_profile("user-1")
    winner = make_family(store, "Winner")

    def competing_bootstrap():
        store.tables["family_members"]["m-winner"] = {
            "id": "m-winner", "family_id": winner.id, "profile_id": profile.id,
            "role": "owner", "is_default": True, "created_at": "2025-12-31T00:00:00+00:00",
        }

    store.hooks[("family_members", "insert")] = competing_bootstrap

    family = registrar.bootstrap_default_family(profile)

    assert family.id == winner.id
    assert [f["id"] for f in store.rows("families")] == [winner.id]
    assert [m["id"] for m in store.rows("family_members")] == ["m-winner"]


def test_concurrent_bootstrap_survives_failed_cleanup(registrar, store, caplog):
    profile = registrar.ensure_profile("user-1")
    winner = make_family(store, "Winner")

    def competing_bootstrap():
        store.tables["family_members"]["m-winner"] = {
            "id": "m-winner", "family_id": winner.id, "profile_id": profile.id,
            "role": "owner", "is_default": True, "created_at": "2025-12-31T00:00:00+00:00",
        }

    store.hooks[("family_members", "insert")] = competing_bootstrap
    store.failures[("families", "delete")] = InternalError("Store delete on families failed")

    family = registrar.bootstrap_default_family(profile)

    assert family.id == winner.id
    assert registrar.get_default_membership(profile.id).id == "m-winner"
    assert "Could not discard duplicate family" in caplog.text
    # The leftover family still has its member, never an empty family
    leftover = [f["id"] for f in store.rows("families") if f["id"] != winner.id]
    assert len(leftover) == 1
    assert registrar.list_family_members(leftover[0])[0].profile_id == profile.id


def test_require_owner_and_member(registrar, store):
    owner = registrar.ensure_profile("user-owner")
    member = registrar.ensure_profile("user-member")
    stranger = registrar.ensure_profile("user-stranger")
    family = make_family(store)
    registrar.grant_membership(owner.id, family.id, MemberRole.owner)
    registrar.grant_membership(member.id, family.id)

    assert registrar.require_owner(owner.id, family.id).role == MemberRole.owner
    assert registrar.require_member(member.id, family.id).role == MemberRole.member
    with pytest.raises(Forbidden):
        registrar.require_owner(member.id, family.id)
    with pytest.raises(Forbidden):
        registrar.require_member(stranger.id, family.id)
    with pytest.raises(NotFound):
        registrar.require_family("missing")


def test_member_display_joins_profiles(registrar, store):
    owner = registrar.ensure_profile("user-owner", "Olive")
    family = make_family(store)
    registrar.grant_membership(owner.id, family.id, MemberRole.owner)

    members = registrar.list_member_display(family.id)

    assert len(members) == 1
    assert members[0].full_name == "Olive"
    assert members[0].role == MemberRole.owner


def test_update_display_name_trims(registrar):
    profile = registrar.ensure_profile("user-1")

    updated = registrar.update_display_name(profile.id, "  Sam  ")

    assert updated.full_name == "Sam"
    with pytest.raises(NotFound):
        registrar.update_display_name("missing", "Sam")


def test_membership_row_defaults(store):
    membership = store.insert(Membership, {"family_id": "f", "profile_id": "p"})
    assert membership.role == MemberRole.member
    assert membership.is_default is False
