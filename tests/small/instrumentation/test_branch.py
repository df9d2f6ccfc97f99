"""Tests for branch types and the branch id format."""

from __future__ import annotations

import pytest

from pytest_hotpath.instrumentation.branch import BranchPoint, BranchType, make_branch_id, parse_branch_id


class TestBranchType:
    """Test the BranchType enum."""

    def test_values_match_wire_names(self):
        assert {t.value for t in BranchType} == {
            'if',
            'ternary',
            'switch-case',
            'logical',
            'jsx-conditional',
            'jsx-ternary',
        }

    def test_str_is_the_value(self):
        assert str(BranchType.SWITCH_CASE) == 'switch-case'

    def test_compares_equal_to_plain_string(self):
        assert BranchType.IF == 'if'


class TestMakeBranchId:
    """Test building branch ids."""

    def test_formats_all_components(self):
        assert make_branch_id('app/views.py', 45, 8, BranchType.IF, 0) == 'app/views.py:45:8:if#0'

    def test_accepts_type_as_string(self):
        assert make_branch_id('a.py', 1, 1, 'jsx-ternary', 3) == 'a.py:1:1:jsx-ternary#3'


class TestParseBranchId:
    """Test splitting branch ids."""

    def test_parses_components(self):
        assert parse_branch_id('Dashboard.tsx:45:8:if#0') == ('Dashboard.tsx', 45, 8, 'if', 0)

    def test_file_part_may_contain_colons(self):
        branch_id = make_branch_id('C:/work/app.py', 3, 5, BranchType.LOGICAL, 2)

        assert parse_branch_id(branch_id) == ('C:/work/app.py', 3, 5, 'logical', 2)

    @pytest.mark.parametrize(
        ('branch_id', 'expected'),
        [
            ('app.py:x:1:if#0', ('app.py', 0, 1, 'if', 0)),
            ('app.py:1:1:if#abc', ('app.py', 1, 1, 'if', 0)),
            ('app.py:2:3:if', ('app.py', 2, 3, 'if', 0)),
        ],
    )
    def test_unparseable_numbers_become_zero(self, branch_id, expected):
        assert parse_branch_id(branch_id) == expected

    def test_round_trips_hyphenated_type(self):
        branch_id = make_branch_id('src/pkg/mod.py', 10, 4, BranchType.SWITCH_CASE, 7)

        assert parse_branch_id(branch_id) == ('src/pkg/mod.py', 10, 4, 'switch-case', 7)


class TestBranchPoint:
    """Test the BranchPoint value object."""

    def test_is_immutable(self):
        point = BranchPoint('a.py:1:1:if#0', 'a.py', 1, 1, BranchType.IF, 'x')

        with pytest.raises(AttributeError):
            point.line = 2  # type: ignore[misc]
