# src/braille_dla/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np


@dataclass
class ClusterResult:
    """Common container for an exported cluster snapshot."""

    occupied: Optional[np.ndarray] = None
    positions: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Return a numpy Generator; ``None`` gives an unseeded one."""
    return np.random.default_rng(seed)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_cluster_result(
    path: str | os.PathLike[str], result: ClusterResult, *, overwrite: bool = True
) -> None:
    """Serialize a ClusterResult to a compressed .npz file."""
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    out: Dict[str, Any] = {}
    if result.occupied is not None:
        out["occupied"] = result.occupied.astype("uint8")
    if result.positions is not None:
        out["positions"] = np.asarray(result.positions, dtype=np.float64)

    # Arrays go to the top level so they load without pickle
    meta_clean = {}
    for key, value in (result.meta or {}).items():
        if isinstance(value, np.ndarray):
            out[key] = value
        else:
            meta_clean[key] = value
    out["meta"] = json.dumps(meta_clean)

    np.savez_compressed(path, **out)


def load_cluster(path: str | os.PathLike[str]) -> ClusterResult:
    """
    Load a cluster .npz written by save_cluster_result.
    """
    with np.load(path) as data:
        occupied = data["occupied"].astype(bool) if "occupied" in data else None
        positions = data["positions"].astype(float) if "positions" in data else None
        meta: Dict[str, Any] = {}
        if "meta" in data:
            meta = json.loads(str(data["meta"]))
        for key in data.files:
            if key not in {"occupied", "positions", "meta"}:
                meta[key] = data[key]
    return ClusterResult(occupied=occupied, positions=positions, meta=meta)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
