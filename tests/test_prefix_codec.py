"""Tests for owner-scoped prefix codecs.

Covers:
- Prefixes end with the delimiter and never nest across owners
- join/strip round trip
- Anchored stripping (no substring or pattern matching)
- Owner id validation and namespace normalisation
"""

from __future__ import annotations

import itertools

import pytest

from resource_storage.prefix import (
    MAX_OWNER_ID,
    NamespacePrefixCodec,
    PrefixCodec,
    ShardedPrefixCodec,
)

OWNER_IDS = [0, 1, 4, 7, 10, 42, 420, 4200, 123456789, MAX_OWNER_ID]


@pytest.fixture(
    params=[
        NamespacePrefixCodec(),
        NamespacePrefixCodec("venues"),
        NamespacePrefixCodec("/tenants/venues/"),
        ShardedPrefixCodec(),
        ShardedPrefixCodec("catalogs", shard_chars=3),
    ],
    ids=["bare", "namespace", "nested-namespace", "sharded", "sharded-namespace"],
)
def codec(request: pytest.FixtureRequest) -> PrefixCodec:
    return request.param


class TestPrefixShape:
    """Tests for the format of derived prefixes."""

    def test_namespace_prefix_format(self) -> None:
        """Namespace codec formats {namespace}/{owner_id}/."""
        assert NamespacePrefixCodec("venues").prefix(42) == "venues/42/"
        assert NamespacePrefixCodec().prefix(42) == "42/"

    def test_namespace_is_normalised(self) -> None:
        """Surrounding slashes in the namespace are dropped."""
        assert NamespacePrefixCodec("/venues/").prefix(7) == "venues/7/"
        assert NamespacePrefixCodec("a/b").prefix(7) == "a/b/7/"

    def test_namespace_with_empty_segment_rejected(self) -> None:
        """Namespaces like 'a//b' would create empty folders."""
        with pytest.raises(ValueError):
            NamespacePrefixCodec("a//b")

    def test_sharded_prefix_format(self) -> None:
        """Sharded codec places a hex shard before the owner id."""
        codec = ShardedPrefixCodec("venues", shard_chars=2)
        prefix = codec.prefix(42)
        namespace, shard, owner, trailing = prefix.split("/")
        assert namespace == "venues"
        assert len(shard) == 2
        assert all(c in "0123456789abcdef" for c in shard)
        assert owner == "42"
        assert trailing == ""

    def test_sharded_prefix_is_deterministic(self) -> None:
        """The same owner always maps to the same shard."""
        assert ShardedPrefixCodec().prefix(99) == ShardedPrefixCodec().prefix(99)

    def test_sharded_shard_chars_bounds(self) -> None:
        """shard_chars outside 1..64 is rejected."""
        with pytest.raises(ValueError):
            ShardedPrefixCodec(shard_chars=0)
        with pytest.raises(ValueError):
            ShardedPrefixCodec(shard_chars=65)

    def test_prefix_ends_with_delimiter(self, codec: PrefixCodec) -> None:
        """Every prefix ends with '/'."""
        for owner_id in OWNER_IDS:
            assert codec.prefix(owner_id).endswith("/")


class TestPrefixInjectivity:
    """Distinct owners never share or nest prefixes."""

    def test_distinct_owners_distinct_prefixes(self, codec: PrefixCodec) -> None:
        """prefix(a) != prefix(b) and neither starts with the other."""
        for a, b in itertools.combinations(OWNER_IDS, 2):
            pa, pb = codec.prefix(a), codec.prefix(b)
            assert pa != pb
            assert not pa.startswith(pb)
            assert not pb.startswith(pa)

    def test_numeric_prefix_collision_avoided(self) -> None:
        """Owner 4 does not claim keys of owner 42."""
        codec = NamespacePrefixCodec("venues")
        assert not "venues/42/report.pdf".startswith(codec.prefix(4))


class TestJoinStrip:
    """Tests for join and strip."""

    @pytest.mark.parametrize(
        "name",
        ["report.pdf", "images/logo.png", "a/b/c.txt", "", "42/nested.txt", "venues/1/x"],
    )
    def test_round_trip(self, codec: PrefixCodec, name: str) -> None:
        """strip(o, join(o, n)) == n."""
        for owner_id in (0, 42, MAX_OWNER_ID):
            assert codec.strip(owner_id, codec.join(owner_id, name)) == name

    def test_join_concatenates(self) -> None:
        """join is prefix + name."""
        codec = NamespacePrefixCodec("venues")
        assert codec.join(42, "report.pdf") == "venues/42/report.pdf"

    def test_strip_without_prefix_returns_key_unchanged(self) -> None:
        """Keys outside the owner's folder are returned as-is."""
        codec = NamespacePrefixCodec("venues")
        assert codec.strip(42, "venues/7/report.pdf") == "venues/7/report.pdf"
        assert codec.strip(42, "other/venues/42/report.pdf") == "other/venues/42/report.pdf"

    def test_strip_only_removes_leading_occurrence(self) -> None:
        """A repeated prefix inside the name survives stripping."""
        codec = NamespacePrefixCodec("venues")
        key = "venues/42/venues/42/copy.txt"
        assert codec.strip(42, key) == "venues/42/copy.txt"

    def test_strip_treats_pattern_characters_literally(self) -> None:
        """Namespaces with regex metacharacters are matched literally."""
        codec = NamespacePrefixCodec("a.b+c")
        assert codec.strip(1, "a.b+c/1/x.txt") == "x.txt"
        assert codec.strip(1, "aXb+c/1/x.txt") == "aXb+c/1/x.txt"
        assert codec.strip(1, "a.bbc/1/x.txt") == "a.bbc/1/x.txt"


class TestOwnerValidation:
    """Owner ids must be 64-bit non-negative integers."""

    @pytest.mark.parametrize("owner_id", [-1, MAX_OWNER_ID + 1])
    def test_out_of_range_rejected(self, codec: PrefixCodec, owner_id: int) -> None:
        """Negative and over-64-bit owner ids raise ValueError."""
        with pytest.raises(ValueError):
            codec.prefix(owner_id)

    @pytest.mark.parametrize("owner_id", ["42", 4.2, True])
    def test_non_integer_rejected(self, owner_id: object) -> None:
        """Strings, floats and bools are not owner ids."""
        with pytest.raises(TypeError):
            NamespacePrefixCodec().prefix(owner_id)  # type: ignore[arg-type]
