"""
twostage.core.ledger
====================

A small **Polars-backed**, append-only event ledger with JSON-UTF8 payloads.

Components that have something to report that is neither a result nor an
error (for instance a sample space thinning its candidate grid) append a typed
event here instead of printing. Tests and callers inspect the events through
`Ledger.reader()` or the raw frame.

No persistence here; `frame()` returns a Polars DataFrame that callers may
write wherever they like.

Examples
--------
>>> from twostage.core.ledger import Ledger
>>> from twostage.core.names import Namespace
>>> L = Ledger()
>>> L.write_event(namespace=Namespace.DIAGNOSTICS, kind="thinned",
...               entity="samplespace#n1=10", payload_type="ThinningNotice",
...               payload={"n1": 10, "stride": 2.5}, tag="diag:thinning")
>>> L.reader().count(namespace=Namespace.DIAGNOSTICS)
1
>>> L.reader().latest(tag="diag:thinning").payload["stride"]
2.5
"""

from __future__ import annotations
import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Union, cast

import polars as pl

from twostage.core.names import Namespace

# Type aliases
NamespaceLike = Union[Namespace, str]


def _ns(namespace: NamespaceLike) -> str:
    return namespace.value if isinstance(namespace, Namespace) else str(namespace)


@dataclass(frozen=True)
class Row:
    """A decoded ledger record."""

    uuid: str
    ts: datetime
    namespace: str
    kind: str
    entity: str
    tag: Optional[str]
    payload_type: str
    payload: Dict[str, Any]


class LedgerReader:
    """Read-only, filtered view over a snapshot of the ledger frame."""

    def __init__(self, df: pl.DataFrame) -> None:
        self.df = df

    def _filter(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        entity: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> pl.DataFrame:
        q = self.df
        if namespace is not None:
            q = q.filter(pl.col("namespace") == _ns(namespace))
        if kind is not None:
            q = q.filter(pl.col("kind") == kind)
        if entity is not None:
            q = q.filter(pl.col("entity") == entity)
        if tag is not None:
            q = q.filter(pl.col("tag") == tag)
        return q

    @staticmethod
    def _row(rec: Dict[str, Any]) -> Row:
        return Row(
            uuid=rec["uuid"],
            ts=rec["ts"],
            namespace=rec["namespace"],
            kind=rec["kind"],
            entity=rec["entity"],
            tag=rec["tag"],
            payload_type=rec["payload_type"],
            payload=json.loads(rec["payload"]) if rec["payload"] else {},
        )

    def iter_rows(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        entity: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Iterator[Row]:
        q = self._filter(namespace=namespace, kind=kind, entity=entity, tag=tag)
        for rec in q.iter_rows(named=True):
            yield self._row(rec)

    def latest(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        entity: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Optional[Row]:
        q = self._filter(namespace=namespace, kind=kind, entity=entity, tag=tag)
        if q.height == 0:
            return None
        return self._row(q.tail(1).to_dicts()[0])

    def count(self, **filters: Any) -> int:
        return int(self._filter(**filters).height)


class Ledger:
    """Polars-backed append-only ledger with a JSON-UTF8 payload column.

    Appends are serialized with a lock so that several threads (e.g. an
    optimizer discretizing different interim sizes concurrently) may share
    one ledger.
    """

    _SCHEMA = {
        "uuid": pl.Utf8,
        "ts": pl.Datetime(time_unit="us", time_zone="UTC"),
        "namespace": pl.Utf8,
        "kind": pl.Utf8,
        "entity": pl.Utf8,
        "tag": pl.Utf8,
        "payload_type": pl.Utf8,
        "payload": pl.Utf8,  # JSON string
    }

    def __init__(self, df: Optional[pl.DataFrame] = None) -> None:
        self._df = (
            df if df is not None else pl.DataFrame(schema=cast(Any, self._SCHEMA))
        )
        self._lock = threading.Lock()

    def write_event(
        self,
        *,
        namespace: NamespaceLike,
        kind: str,
        entity: str,
        payload_type: str,
        payload: Dict[str, Any],
        tag: Optional[str] = None,
        ts: Optional[datetime] = None,
    ) -> None:
        """Append a typed event to the ledger."""
        if ts is None:
            ts = datetime.now(timezone.utc)
        elif ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        row = pl.DataFrame(
            {
                "uuid": [str(uuid.uuid4())],
                "ts": [ts],
                "namespace": [_ns(namespace)],
                "kind": [kind],
                "entity": [entity],
                "tag": [tag],
                "payload_type": [payload_type],
                "payload": [json.dumps(payload, separators=(",", ":"))],
            },
            schema=cast(Any, self._SCHEMA),
        )
        with self._lock:
            self._df = pl.concat([self._df, row], how="vertical_relaxed")

    def reader(self) -> LedgerReader:
        with self._lock:
            return LedgerReader(self._df)

    def frame(self) -> pl.DataFrame:
        """Return a copy of the underlying Polars DataFrame."""
        with self._lock:
            return self._df.clone()

    def __len__(self) -> int:
        return self._df.height
