"""Unit tests for scoped address normalization and splitting."""

import pytest

from treebridge_library.scoped import normalize_path
from treebridge_library.scoped import split_address

ROOT = "content://test.documents/tree/primary%3AGame/document/primary%3AGame"


@pytest.mark.unit
class TestNormalizePath:
    """Test prefix substitution and percent-encoding."""

    def test_strips_root_and_encodes_remainder(self) -> None:
        assert normalize_path(ROOT + "/deck/my deck.ydk", ROOT) == ROOT + "%2Fdeck%2Fmy%20deck.ydk"

    def test_path_without_root_prefix(self) -> None:
        assert normalize_path("/pics/a.png", ROOT) == ROOT + "%2Fpics%2Fa.png"

    def test_root_normalizes_to_itself(self) -> None:
        assert normalize_path(ROOT, ROOT) == ROOT

    def test_unreserved_characters_stay_literal(self) -> None:
        assert normalize_path(ROOT + "/a-b_c.d~e!'()*", ROOT) == ROOT + "%2Fa-b_c.d~e!'()*"

    def test_reserved_characters_are_encoded(self) -> None:
        assert normalize_path(ROOT + "/a:b?c#d%e", ROOT) == ROOT + "%2Fa%3Ab%3Fc%23d%25e"

    def test_non_ascii_is_utf8_encoded(self) -> None:
        assert normalize_path(ROOT + "/é", ROOT) == ROOT + "%2F%C3%A9"


@pytest.mark.unit
class TestSplitAddress:
    """Test splitting an encoded address into parent and leaf."""

    def test_splits_at_last_separator(self) -> None:
        assert split_address(ROOT + "%2Fdeck%2Fa.ydk") == (ROOT + "%2Fdeck", "a.ydk")

    def test_trailing_separator_is_dropped(self) -> None:
        assert split_address(ROOT + "%2Fdeck%2F") == (ROOT, "deck")

    def test_leaf_stays_encoded(self) -> None:
        assert split_address(ROOT + "%2Fmy%20deck.ydk") == (ROOT, "my%20deck.ydk")

    def test_no_separator_raises(self) -> None:
        with pytest.raises(ValueError, match="no parent"):
            split_address("plainaddress")
