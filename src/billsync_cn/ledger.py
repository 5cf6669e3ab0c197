"""In-memory transaction ledger keyed by transaction id."""

from collections.abc import Iterable, Iterator

from billsync_cn.models import MergeStats, Transaction


class Ledger:
    """
    Deduplicated collection of transactions.

    A ledger is never changed in place: merge() returns a new ledger
    so a view derived from one ledger stays a valid snapshot.

    Usage:
        ledger, stats = Ledger().merge(batch)
        print(stats.new_added, stats.duplicates)
        newest_first = ledger.transactions()
    """

    def __init__(self, entries: dict[str, Transaction] | None = None) -> None:
        self._entries: dict[str, Transaction] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._entries

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._entries.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Ledger({len(self)} transactions)"

    @classmethod
    def empty(cls) -> "Ledger":
        return cls()

    def get(self, transaction_id: str) -> Transaction | None:
        """Get a transaction by id."""
        return self._entries.get(transaction_id)

    def merge(self, batch: Iterable[Transaction]) -> tuple["Ledger", MergeStats]:
        """
        Merge a freshly ingested batch.

        The first transaction seen for an id wins; later ones, whether
        already in the ledger or repeated within the batch, only count as
        duplicates. Merging the same batch twice adds nothing the second time.

        Args:
            batch: Transactions in ingestion order

        Returns:
            (merged ledger, counts)
        """
        entries = dict(self._entries)
        new_added = 0
        duplicates = 0

        for tx in batch:
            if tx.transaction_id in entries:
                duplicates += 1
            else:
                entries[tx.transaction_id] = tx
                new_added += 1

        merged = Ledger(entries)
        return merged, MergeStats(
            total=len(merged), new_added=new_added, duplicates=duplicates
        )

    def transactions(self) -> list[Transaction]:
        """Get all transactions, newest first."""
        return sorted(self._entries.values(), key=lambda t: t.time, reverse=True)


def reset() -> Ledger:
    """Return an empty ledger, dropping everything ingested so far."""
    return Ledger.empty()
