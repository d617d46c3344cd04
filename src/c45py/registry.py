# -*- coding: utf-8 -*-
"""
c45py.registry
==============

Versioned storage of trained models.

A :class:`ModelArtifact` bundles a tree with its metrics, rules,
hyper-parameters and provenance.  Artifacts are immutable: saving under an
existing id appends a new version and the previous one is superseded, never
changed.  :class:`ModelRegistry` keeps every version in memory and, when
given a directory, mirrors them to ``<id>-v<version>.joblib`` files with
:mod:`joblib`.  Writes are serialised per model id.
"""

from __future__ import annotations

import copy
import itertools
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import joblib

from .config import TrainingConfig
from .exceptions import InvalidInputError, ModelNotFoundError
from .logger import get_logger
from .metrics import EvaluationResult
from .tree import TreeNode, tree_to_dict

logger = get_logger(__name__)

_FILE_RE = re.compile(r"^(?P<id>.+)-v(?P<version>\d+)\.joblib$")


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    version: int
    created_at: datetime
    accuracy: float
    data_size: int
    config: TrainingConfig


@dataclass(frozen=True)
class ModelArtifact:
    model_id: str
    version: int
    name: str
    tree: TreeNode
    metrics: EvaluationResult
    rules: tuple
    config: TrainingConfig
    created_at: datetime
    training_size: int
    metadata: dict = field(default_factory=dict)

    @property
    def info(self) -> ModelInfo:
        return ModelInfo(id=self.model_id, name=self.name, version=self.version,
                         created_at=self.created_at, accuracy=self.metrics.accuracy,
                         data_size=self.training_size, config=self.config)

    def to_dict(self) -> dict:
        return {"id": self.model_id,
                "version": self.version,
                "name": self.name,
                "tree": tree_to_dict(self.tree),
                "metrics": self.metrics.to_dict(),
                "rules": [r.to_dict() for r in self.rules],
                "config": self.config.to_dict(),
                "created_at": self.created_at.isoformat(),
                "training_size": self.training_size,
                "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class RegistryStats:
    total_models: int
    average_accuracy: float
    best_model: Optional[ModelInfo]
    total_training_records: int


def _check_id(model_id: str) -> str:
    if not isinstance(model_id, str) or not model_id.strip():
        raise InvalidInputError("model_id must be a non-empty string")
    if "/" in model_id or "\\" in model_id or model_id in (".", ".."):
        raise InvalidInputError(f"model_id must not contain path separators: {model_id!r}")
    return model_id


class ModelRegistry:
    """
    Process-wide store of model artifacts keyed by model id.

    Parameters
    ----------
    directory : str or Path, optional
        Persist artifacts there.  Existing files are loaded by :meth:`open`,
        which every operation calls on first use.

    The registry is usable as a context manager: entering opens it, leaving
    closes it.  Artifacts are deep-copied on save, so later changes to the
    training result never reach a stored version.
    """

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory) if directory is not None else None
        self._models: dict[str, list[ModelArtifact]] = {}
        # model id -> [lock, number of writers holding or waiting on it]
        self._locks: dict[str, list] = {}
        self._guard = threading.Lock()
        self._open_lock = threading.Lock()
        self._last_id: Optional[str] = None
        # model id -> position of its most recent save
        self._saved_order: dict[str, int] = {}
        self._counter = itertools.count()
        self._opened = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def open(self) -> "ModelRegistry":
        with self._open_lock:
            if self._opened:
                return self
            if self.directory is not None:
                self._load_directory()
            self._opened = True
        return self

    def _load_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        loaded = [joblib.load(path) for path in sorted(self.directory.glob("*.joblib"))
                  if _FILE_RE.match(path.name)]
        loaded.sort(key=lambda a: (a.created_at, a.version))
        added = 0
        with self._guard:
            for artifact in loaded:
                versions = self._models.get(artifact.model_id, [])
                if any(a.version == artifact.version for a in versions):
                    continue
                self._models[artifact.model_id] = sorted(versions + [artifact],
                                                         key=lambda a: a.version)
                self._saved_order[artifact.model_id] = next(self._counter)
                self._last_id = artifact.model_id
                added += 1
        logger.info("loaded %d artifacts from %s", added, self.directory)

    def _ensure_open(self) -> None:
        if not self._opened:
            self.open()

    def close(self) -> None:
        if self.directory is not None:
            with self._guard:
                artifacts = [a for versions in self._models.values() for a in versions]
            for artifact in artifacts:
                path = self._path(artifact.model_id, artifact.version)
                if not path.exists():
                    joblib.dump(artifact, path)
        self._opened = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    @contextmanager
    def _id_lock(self, model_id: str):
        """Serialise writers of one model id; the lock is dropped with its last user."""
        with self._guard:
            entry = self._locks.setdefault(model_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0 and model_id not in self._models:
                    del self._locks[model_id]

    def _path(self, model_id: str, version: int) -> Path:
        return self.directory / f"{model_id}-v{version}.joblib"

    def save(self, model_id: str, result, name: Optional[str] = None,
             metadata: Optional[dict] = None) -> ModelArtifact:
        """
        Store a :class:`~c45py.training.TrainingResult` as the next version of ``model_id``.

        Returns
        -------
        ModelArtifact
            The new, immutable artifact.
        """
        _check_id(model_id)
        self._ensure_open()
        with self._id_lock(model_id):
            versions = self._models.get(model_id, [])
            version = versions[-1].version + 1 if versions else 1
            if self.directory is not None:
                # never overwrite a file written behind this registry's back
                while self._path(model_id, version).exists():
                    version += 1
            created_at = datetime.now(timezone.utc)
            artifact = ModelArtifact(
                model_id=model_id,
                version=version,
                name=name or f"Model {created_at:%Y-%m-%d}",
                tree=copy.deepcopy(result.tree),
                metrics=copy.deepcopy(result.metrics),
                rules=tuple(copy.deepcopy(list(result.rules))),
                config=result.config,
                created_at=created_at,
                training_size=len(result.train_set),
                metadata=copy.deepcopy(dict(metadata or {})),
            )
            if self.directory is not None:
                self.directory.mkdir(parents=True, exist_ok=True)
                joblib.dump(artifact, self._path(model_id, version))
            with self._guard:
                self._models[model_id] = versions + [artifact]
                self._saved_order[model_id] = next(self._counter)
                self._last_id = model_id
        logger.info("saved model %r version %d (accuracy %.4f)",
                    model_id, version, artifact.metrics.accuracy)
        return artifact

    def load(self, model_id: str, version: Optional[int] = None) -> ModelArtifact:
        self._ensure_open()
        versions = self._models.get(model_id)
        if not versions:
            raise ModelNotFoundError(f"Model {model_id!r} not found")
        if version is None:
            return versions[-1]
        for artifact in versions:
            if artifact.version == version:
                return artifact
        raise ModelNotFoundError(f"Model {model_id!r} has no version {version}")

    def latest(self) -> ModelArtifact:
        """The artifact saved most recently, whatever its id."""
        self._ensure_open()
        with self._guard:
            versions = self._models.get(self._last_id) if self._last_id is not None else None
        if not versions:
            raise ModelNotFoundError("No model available; train a model first")
        return versions[-1]

    def history(self, model_id: str) -> list[ModelArtifact]:
        self._ensure_open()
        versions = self._models.get(model_id)
        if versions is None:
            raise ModelNotFoundError(f"Model {model_id!r} not found")
        return list(versions)

    def list_models(self) -> list[ModelInfo]:
        """Current version of every model, newest first."""
        self._ensure_open()
        with self._guard:
            current = [(self._saved_order.get(mid, -1), versions[-1])
                       for mid, versions in self._models.items() if versions]
        current.sort(key=lambda item: item[0], reverse=True)
        return [artifact.info for _, artifact in current]

    def delete(self, model_id: str) -> bool:
        self._ensure_open()
        with self._id_lock(model_id):
            with self._guard:
                versions = self._models.pop(model_id, None)
                if versions is None:
                    return False
                self._saved_order.pop(model_id, None)
                if self._last_id == model_id:
                    self._last_id = (max(self._saved_order, key=self._saved_order.get)
                                     if self._saved_order else None)
            if self.directory is not None:
                for artifact in versions:
                    self._path(model_id, artifact.version).unlink(missing_ok=True)
        logger.info("deleted model %r (%d versions)", model_id, len(versions))
        return True

    def stats(self) -> RegistryStats:
        models = self.list_models()
        if not models:
            return RegistryStats(total_models=0, average_accuracy=0.0,
                                 best_model=None, total_training_records=0)
        best = models[0]
        for info in models[1:]:
            if info.accuracy > best.accuracy:
                best = info
        return RegistryStats(
            total_models=len(models),
            average_accuracy=sum(m.accuracy for m in models) / len(models),
            best_model=best,
            total_training_records=sum(m.data_size for m in models),
        )

    def __contains__(self, model_id: Any) -> bool:
        self._ensure_open()
        return model_id in self._models

    def __len__(self) -> int:
        self._ensure_open()
        return len(self._models)


_registry: Optional[ModelRegistry] = None
_registry_lock = threading.Lock()


def get_registry(directory: str | Path | None = None) -> ModelRegistry:
    """
    Process-wide registry, created and opened on first use.

    Raises
    ------
    InvalidInputError
        If ``directory`` differs from the one the registry was created with.
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = ModelRegistry(directory).open()
        elif directory is not None and _registry.directory != Path(directory):
            raise InvalidInputError(
                f"Registry already open on {_registry.directory}, not {directory}; "
                "call reset_registry() first")
        return _registry


def reset_registry() -> None:
    """Close and drop the process-wide registry."""
    global _registry
    with _registry_lock:
        if _registry is not None:
            _registry.close()
        _registry = None
