"""Unit tests for the data models."""

import pytest

from ftso_monitor.models import Role, ScanWindow, WindowSnapshot, wei_to_tokens


class TestRole:
    """Test suite for Role."""

    def test_labels(self):
        assert Role.SIGNING_POLICY.label == "Signing Policy Address"
        assert Role.SUBMIT.label == "Submit Address"
        assert Role.SUBMIT_SIGNATURE.label == "Submit Signature Address"

    def test_metric_prefixes(self):
        assert [role.metric_prefix for role in Role] == [
            "ftso_signing_policy",
            "ftso_submit",
            "ftso_submit_signature",
        ]


class TestWeiConversion:
    """Test suite for balance conversion."""

    def test_whole_tokens(self):
        """Test that 5e18 wei is reported as 5.0 tokens."""
        assert wei_to_tokens(5_000_000_000_000_000_000) == 5.0

    def test_fractional_tokens(self):
        assert wei_to_tokens(1_500_000_000_000_000_000) == pytest.approx(1.5)

    def test_zero(self):
        assert wei_to_tokens(0) == 0.0


class TestScanWindow:
    """Test suite for ScanWindow."""

    def test_half_open_range(self):
        """Test that the head itself is excluded from the window."""
        window = ScanWindow.ending_at(100, 2)

        assert window.start == 98
        assert window.end == 100
        assert list(window) == [98, 99]
        assert len(window) == 2

    def test_default_window(self):
        window = ScanWindow.ending_at(1_000, 100)
        assert list(window)[0] == 900
        assert list(window)[-1] == 999

    def test_clamped_at_genesis(self):
        """Test that a chain shorter than the window starts at block 0."""
        window = ScanWindow.ending_at(3, 100)

        assert window.start == 0
        assert list(window) == [0, 1, 2]

    def test_str(self):
        assert str(ScanWindow(5, 10)) == "[5, 10)"


class TestWindowSnapshot:
    """Test suite for WindowSnapshot."""

    def test_empty_snapshot(self):
        """Test that the placeholder reports nothing found and zero balances."""
        snapshot = WindowSnapshot.empty()

        for role in Role:
            assert snapshot.found[role] is False
            assert snapshot.balance[role] == 0.0

    def test_missing_roles_filled_in(self):
        """Test that partial input still yields an entry for every role."""
        snapshot = WindowSnapshot(found={Role.SUBMIT: True}, balance={Role.SUBMIT: 2.5})

        assert snapshot.found == {
            Role.SIGNING_POLICY: False,
            Role.SUBMIT: True,
            Role.SUBMIT_SIGNATURE: False,
        }
        assert snapshot.balance[Role.SUBMIT] == 2.5
        assert snapshot.balance[Role.SIGNING_POLICY] == 0.0

    def test_missing_property(self):
        snapshot = WindowSnapshot(found={Role.SIGNING_POLICY: True})
        assert snapshot.missing == [Role.SUBMIT, Role.SUBMIT_SIGNATURE]

    def test_snapshot_is_read_only(self):
        """Test that a snapshot cannot be mutated after construction."""
        snapshot = WindowSnapshot(found={Role.SUBMIT: True})

        with pytest.raises(TypeError):
            snapshot.found[Role.SUBMIT] = False

        with pytest.raises(AttributeError):
            snapshot.found = {}

    def test_source_mapping_changes_do_not_leak(self):
        """Test that the snapshot copies its input mappings."""
        found = {Role.SUBMIT: True}
        snapshot = WindowSnapshot(found=found)

        found[Role.SUBMIT] = False

        assert snapshot.found[Role.SUBMIT] is True

    def test_to_dict(self):
        snapshot = WindowSnapshot(found={Role.SUBMIT: True}, balance={Role.SUBMIT: 1.0})

        assert snapshot.to_dict()["submit"] == {"found": True, "balance": 1.0}
        assert snapshot.to_dict()["signing_policy"] == {"found": False, "balance": 0.0}
