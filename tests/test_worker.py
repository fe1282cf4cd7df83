import itertools
import unittest

from bams.config import BamsConfig
from bams.kernel.failures import NotFoundError
from bams.provenance.entities import EntityKind
from bams.provenance.registry import LedgerRegistry
from bams.provenance.store import MemoryStore
from bams.runtime.worker import LedgerWorker


class LedgerWorkerTest(unittest.TestCase):
    def setUp(self) -> None:
        counter = itertools.count(1_700_000_000_000)
        self.registry = LedgerRegistry(MemoryStore(), BamsConfig(difficulty=1), now_fn=lambda: next(counter))

    def test_operations_run_in_submission_order(self) -> None:
        with LedgerWorker(self.registry) as worker:
            worker.call("create_department", "D", entity_id="d1").result()
            futures = [
                worker.call("rename", EntityKind.DEPARTMENT, "d1", f"D{n}") for n in range(5)
            ]
            names = [future.result().name for future in futures]

        self.assertEqual(names, [f"D{n}" for n in range(5)])
        chain = self.registry.get(EntityKind.DEPARTMENT, "d1").chain
        self.assertEqual(len(chain.blocks), 6)
        self.assertEqual([block.payload["newName"] for block in chain.blocks[1:]], names)

    def test_errors_surface_through_future(self) -> None:
        with LedgerWorker(self.registry) as worker:
            future = worker.call("mark_attendance", "missing", "Present")
            with self.assertRaises(NotFoundError):
                future.result()

    def test_submit_accepts_callables(self) -> None:
        with LedgerWorker(self.registry) as worker:
            report = worker.submit(self.registry.validate).result()
        self.assertTrue(report.overall)


if __name__ == "__main__":
    unittest.main()
