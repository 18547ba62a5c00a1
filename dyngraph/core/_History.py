import inspect
import json
import time
from datetime import UTC, datetime
from functools import wraps

import numpy as np
import polars as pl

from ._ids import _Identifier


class History:
    """Append-only, in-memory log of the mutations applied to a dynamic graph.

    Classes mixing this in call ``_init_history()`` from ``__init__`` and list
    their mutators in ``_HISTORY_OPS``; those methods get wrapped so every call
    is recorded with its arguments and result.
    """

    _HISTORY_OPS: tuple = ()

    def _init_history(self):
        self._history_enabled = True
        self._history = []  # list[dict]
        self._version = 0
        self._history_clock0 = time.perf_counter_ns()
        self._install_history_hooks()

    def _utcnow_iso(self) -> str:
        return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")

    def _jsonify(self, x):
        # Make args/return JSON-safe & compact.
        if x is None or isinstance(x, (bool, int, float, str)):
            return x
        if isinstance(x, _Identifier):
            return x.value
        if isinstance(x, (set, frozenset)):
            return sorted(self._jsonify(v) for v in x)
        if isinstance(x, (list, tuple)):
            if len(x) > 16:
                return f"<<{type(x).__name__}[{len(x)}]>>"
            return [self._jsonify(v) for v in x]
        if isinstance(x, dict):
            return {str(k): self._jsonify(v) for k, v in x.items()}
        if isinstance(x, np.generic):
            return x.item()
        # frames, arrays and other heavy objects -> just a tag
        return f"<<{type(x).__name__}>>"

    def _log_event(self, op: str, **fields):
        if not self._history_enabled:
            return
        self._version += 1
        evt = {
            "version": self._version,
            "ts_utc": self._utcnow_iso(),
            "mono_ns": time.perf_counter_ns() - self._history_clock0,
            "op": op,
        }
        for k, v in fields.items():
            evt[k] = self._jsonify(v)
        self._history.append(evt)

    def _log_mutation(self, name=None):
        def deco(fn):
            op = name or fn.__name__
            sig = inspect.signature(fn)

            @wraps(fn)
            def wrapper(*args, **kwargs):
                bound = sig.bind(*args, **kwargs)
                bound.apply_defaults()
                result = fn(*args, **kwargs)
                payload = {k: v for k, v in bound.arguments.items() if k != "self"}
                payload["result"] = result
                self._log_event(op, **payload)
                return result

            return wrapper

        return deco

    def _install_history_hooks(self):
        for name in self._HISTORY_OPS:
            fn = getattr(self, name, None)
            if fn is not None and getattr(fn, "__wrapped__", None) is None:
                setattr(self, name, self._log_mutation(name)(fn))

    def history(self, as_df: bool = False):
        """Return the mutation history.

        Parameters
        --
        as_df : bool, default False
            If True, return a Polars DataFrame; otherwise a list of dicts.

        Returns
        ---
        list[dict] or polars.DataFrame
            Each event has 'version', 'ts_utc' (ISO-8601 UTC), 'mono_ns'
            (monotonic nanoseconds since the graph was created), 'op', the call
            arguments and 'result'.

        """
        if as_df:
            return pl.DataFrame(self._history_rows())
        return list(self._history)

    def _history_rows(self):
        # Events of different ops carry different keys; polars wants one schema.
        keys = []
        for evt in self._history:
            keys.extend(k for k in evt if k not in keys)
        rows = []
        for evt in self._history:
            row = {}
            for k in keys:
                v = evt.get(k)
                row[k] = json.dumps(v) if isinstance(v, (list, dict)) else v
            rows.append(row)
        return rows

    def export_history(self, path: str):
        """Write the mutation history to disk.

        Parameters
        --
        path : str
            Output path. Supported extensions: '.parquet', '.ndjson' (or
            '.jsonl'), '.json', '.csv'. Unknown extensions get '.parquet'
            appended.

        Returns
        ---
        int
            Number of events written (0 if the history is empty).

        """
        if not self._history:
            return 0
        path = str(path)
        p = path.lower()
        if p.endswith(".ndjson") or p.endswith(".jsonl"):
            with open(path, "w", encoding="utf-8") as f:
                for evt in self._history:
                    f.write(json.dumps(evt, ensure_ascii=False) + "\n")
            return len(self._history)
        if p.endswith(".json"):
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self._history, f, ensure_ascii=False)
            return len(self._history)
        df = pl.DataFrame(self._history_rows())
        if p.endswith(".csv"):
            df.write_csv(path)
        elif p.endswith(".parquet"):
            df.write_parquet(path)
        else:
            df.write_parquet(path + ".parquet")
        return len(df)

    def enable_history(self, flag: bool = True):
        """Start (True) or pause (False) recording mutations."""
        self._history_enabled = bool(flag)

    def clear_history(self):
        """Drop all recorded events. Files already exported are kept."""
        self._history.clear()

    def mark(self, label: str):
        """Insert a manual marker event (``op='mark'``)."""
        self._log_event("mark", label=label)
