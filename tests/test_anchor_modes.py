import itertools
import unittest

from bams.config import AnchorMode
from bams.provenance.chain import append_block
from bams.provenance.entities import Anchor
from bams.provenance.hashchain import validate_anchor
from bams.provenance.registry import anchor_of, create_child_chain, create_root_chain


def _clock(start: int = 1_700_000_000_000):
    counter = itertools.count(start)
    return lambda: next(counter)


class AnchorModesTest(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _clock()
        self.parent = create_root_chain("P", difficulty=1, now_fn=self.clock)
        self.anchor = anchor_of(self.parent)
        self.child = create_child_chain("C", self.parent, difficulty=1, now_fn=self.clock)

    def test_child_genesis_points_at_parent_tip(self) -> None:
        self.assertEqual(self.child.blocks[0].prev_hash, self.parent.blocks[-1].hash)
        self.assertEqual(self.anchor, Anchor(index=0, hash=self.parent.blocks[0].hash))

    def test_fresh_anchor_valid_in_both_modes(self) -> None:
        self.assertTrue(validate_anchor(self.child, self.parent, mode=AnchorMode.LIVE))
        self.assertTrue(validate_anchor(self.child, self.parent, mode=AnchorMode.SNAPSHOT, anchor=self.anchor))
        self.assertTrue(validate_anchor(self.child, self.parent, mode=AnchorMode.SNAPSHOT))

    def test_parent_mutation_breaks_live_anchor(self) -> None:
        append_block(self.parent, {"type": "update", "x": 1}, difficulty=1, now_fn=self.clock)

        self.assertFalse(validate_anchor(self.child, self.parent, mode=AnchorMode.LIVE))

    def test_parent_mutation_keeps_snapshot_anchor(self) -> None:
        append_block(self.parent, {"type": "update", "x": 1}, difficulty=1, now_fn=self.clock)

        self.assertTrue(validate_anchor(self.child, self.parent, mode=AnchorMode.SNAPSHOT, anchor=self.anchor))
        self.assertTrue(validate_anchor(self.child, self.parent, mode=AnchorMode.SNAPSHOT))

    def test_default_mode_is_snapshot(self) -> None:
        append_block(self.parent, {"type": "update", "x": 1}, difficulty=1, now_fn=self.clock)

        self.assertTrue(validate_anchor(self.child, self.parent, anchor=self.anchor))

    def test_snapshot_rejects_anchor_outside_parent(self) -> None:
        stranger = create_root_chain("Q", difficulty=1, now_fn=self.clock)

        self.assertFalse(validate_anchor(self.child, stranger, mode=AnchorMode.SNAPSHOT, anchor=self.anchor))
        self.assertFalse(validate_anchor(self.child, stranger, mode=AnchorMode.SNAPSHOT))

    def test_snapshot_rejects_mismatched_record(self) -> None:
        wrong_index = Anchor(index=5, hash=self.anchor.hash)
        wrong_hash = Anchor(index=0, hash="f" * 64)

        self.assertFalse(validate_anchor(self.child, self.parent, mode=AnchorMode.SNAPSHOT, anchor=wrong_index))
        self.assertFalse(validate_anchor(self.child, self.parent, mode=AnchorMode.SNAPSHOT, anchor=wrong_hash))


if __name__ == "__main__":
    unittest.main()
