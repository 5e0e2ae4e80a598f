"""
Tests for type-indexed lookup over result logs.
"""
import pytest

from mizu.pipeline import (
    ChangeKind,
    ChangeRecord,
    ResultLog,
    UnresolvedDependency,
    find_one_by_type,
    find_published,
)
from mizu.pipeline.lookup import resolve_expected_type, template_fields


def created(type_: str, identifier: str) -> ChangeRecord:
    return ChangeRecord.created(type_, identifier)


# =============================================================================
# find_one_by_type
# =============================================================================


class TestFindOneByType:
    """Tests for find_one_by_type."""

    def test_first_match_wins(self):
        log = ResultLog(
            [
                created("0x1::m::X", "0xa"),
                created("0x1::m::Y", "0xb"),
                created("0x1::m::X", "0xc"),
            ]
        )
        assert find_one_by_type(log, "0x1::m::X") == "0xa"

    def test_same_log_same_answer(self):
        log = ResultLog([created("0x1::m::X", "0xa"), created("0x1::m::X", "0xc")])
        results = {find_one_by_type(log, "0x1::m::X") for _ in range(10)}
        assert results == {"0xa"}

    def test_absent_returns_none(self):
        log = ResultLog([created("0x1::m::X", "0xa")])
        assert find_one_by_type(log, "0x1::m::Z") is None

    def test_empty_log(self):
        assert find_one_by_type(ResultLog(), "0x1::m::X") is None

    def test_only_created_records_match(self):
        log = ResultLog(
            [
                ChangeRecord(kind=ChangeKind.MUTATED, declared_type="0x1::m::X"),
                created("0x1::m::X", "0xnew"),
            ]
        )
        assert find_one_by_type(log, "0x1::m::X") == "0xnew"

    def test_widget_and_cap(self):
        """A call creating a Widget and its WidgetCap, mutating a counter."""
        log = ResultLog(
            [
                created("P::m::Widget", "W1"),
                created("P::m::WidgetCap", "C1"),
                ChangeRecord(kind=ChangeKind.MUTATED, declared_type="P::m::Counter"),
            ]
        )
        assert find_one_by_type(log, "P::m::Widget") == "W1"
        assert find_one_by_type(log, "P::m::WidgetCap") == "C1"

    def test_generic_instantiations_are_distinct(self):
        nft = "0xabc::mizu_nft::MizuNFT"
        log = ResultLog(
            [
                created(f"0x2::transfer_policy::TransferPolicyCap<{nft}>", "0xcap"),
                created("0x2::transfer_policy::TransferPolicy<0xdef::other::Nft>", "0xother"),
                created(f"0x2::transfer_policy::TransferPolicy<{nft}>", "0xpolicy"),
            ]
        )
        assert find_one_by_type(log, f"0x2::transfer_policy::TransferPolicy<{nft}>") == "0xpolicy"
        assert find_one_by_type(log, f"0x2::transfer_policy::TransferPolicyCap<{nft}>") == "0xcap"

    def test_no_prefix_match(self):
        log = ResultLog([created("0x1::m::WidgetCap", "0xa")])
        assert find_one_by_type(log, "0x1::m::Widget") is None


class TestFindPublished:
    """Tests for find_published."""

    def test_returns_package_id(self):
        log = ResultLog(
            [
                created("0x2::package::UpgradeCap", "0xcap"),
                ChangeRecord(kind=ChangeKind.PUBLISHED, package_id="0xpkg"),
            ]
        )
        assert find_published(log) == "0xpkg"

    def test_no_publish(self):
        assert find_published(ResultLog([created("0x1::m::X", "0xa")])) is None


# =============================================================================
# Expected type templates
# =============================================================================


class TestTemplates:
    """Tests for expected-type templates."""

    def test_template_fields(self):
        expected = "0x2::transfer_policy::TransferPolicy<{packageId}::mizu_nft::MizuNFT>"
        assert template_fields(expected) == ["packageId"]
        assert template_fields("0x2::kiosk::Kiosk") == []

    def test_resolve(self):
        resolved = resolve_expected_type("{packageId}::mint::Mint", {"packageId": "0xabc"})
        assert resolved == "0xabc::mint::Mint"

    def test_resolve_dotted_key(self):
        resolved = resolve_expected_type(
            "{pkg}::m::Ticket<{water_cooler.policy}>",
            {"pkg": "0x1", "water_cooler.policy": "0x2"},
        )
        assert resolved == "0x1::m::Ticket<0x2>"

    def test_missing_placeholder_raises(self):
        with pytest.raises(UnresolvedDependency) as exc_info:
            resolve_expected_type("{packageId}::mint::Mint", {})
        assert exc_info.value.key == "packageId"
