"""
Naming Tests
============

Role classification and output naming of capture files.
"""

from ivf_scorer.models.repair import StreamRole
from ivf_scorer.repair import classify, is_degraded_output, leading_token, output_name


class TestClassify:
    """Tests for classify."""

    def test_sender_is_reference(self):
        assert classify("/data/alice-send_x.ivf") == (StreamRole.REFERENCE, None)

    def test_receiver_is_degraded(self):
        assert classify("/data/bob-recv_y.ivf") == (StreamRole.DEGRADED, "bob")

    def test_unmarked_is_degraded(self):
        """Anything without the send marker is a degraded stream."""
        assert classify("carol_1.ivf") == (StreamRole.DEGRADED, "carol")

    def test_leading_token(self):
        assert leading_token("/a/b/bob-recv_1_2.ivf") == "bob-recv"


class TestOutputName:
    """Tests for output_name."""

    def test_reference_name(self):
        assert output_name("alice-send_x.ivf", "Alice") == "Alice.ivf"

    def test_degraded_name(self):
        assert output_name("bob-recv_y.ivf", "Alice") == "Alice_recv-by_bob.ivf"

    def test_is_degraded_output(self):
        assert is_degraded_output("/out/Alice_recv-by_bob.ivf")
        assert not is_degraded_output("/out/Alice.ivf")
