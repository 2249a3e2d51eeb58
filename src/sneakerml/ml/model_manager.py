"""Model manager: resolve, download, load and cache the sneaker classifier.

Model files come from the HuggingFace Hub unless a local path is configured.
Sessions are created once per model and reused across requests.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from huggingface_hub import hf_hub_download
from onnxruntime import InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

from sneakerml.labels import SNEAKER_LABELS

if TYPE_CHECKING:
    from sneakerml.config import Settings

logger = logging.getLogger(__name__)

IMAGENET_MEAN: tuple[float, float, float] = (0.485, 0.456, 0.406)
IMAGENET_STD: tuple[float, float, float] = (0.229, 0.224, 0.225)


class ModelLoadError(RuntimeError):
    """The classification model could not be resolved or loaded."""


@dataclass(frozen=True)
class ModelSpec:
    """Static metadata for a single ONNX classification model."""

    name: str
    repo_id: str
    filename: str
    labels: tuple[str, ...]
    license: str
    input_size: int = 224
    mean: tuple[float, float, float] = IMAGENET_MEAN
    std: tuple[float, float, float] = IMAGENET_STD
    outputs_logits: bool = True


MODEL_REGISTRY: dict[str, ModelSpec] = {
    "sneaker_mobilenetv2": ModelSpec(
        name="sneaker_mobilenetv2",
        repo_id="sneakerml/sneaker-classifier",
        filename="sneaker_mobilenetv2.onnx",
        labels=tuple(SNEAKER_LABELS),
        license="Apache-2.0",
    ),
    "sneaker_efficientnet_b0": ModelSpec(
        name="sneaker_efficientnet_b0",
        repo_id="sneakerml/sneaker-classifier",
        filename="sneaker_efficientnet_b0.onnx",
        labels=tuple(SNEAKER_LABELS),
        license="Apache-2.0",
    ),
}


def get_model_spec(model_name: str) -> ModelSpec:
    """Look up a registered model, raising ModelLoadError for unknown names."""
    try:
        return MODEL_REGISTRY[model_name]
    except KeyError:
        raise ModelLoadError(f"Unknown model: {model_name}") from None


class OnnxModelManager:
    """Downloads ONNX classifier models and caches their inference sessions."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._models_dir = Path(settings.models_dir)

        self._lock = threading.Lock()
        self._sessions: dict[str, InferenceSession] = {}
        self._model_paths: dict[str, Path] = {}

        self._providers = self._build_providers()
        self._session_options = self._build_session_options()

    # -- Public API ---------------------------------------------------------

    def ensure_downloaded(self, model_name: str) -> Path:
        """Return the local model file, downloading it from the Hub if needed.

        Raises:
            ModelLoadError: If the model is unknown, the configured local file
                is missing, or the download fails.
        """
        spec = get_model_spec(model_name)

        if self._settings.model_path is not None:
            local = Path(self._settings.model_path)
            if not local.is_file():
                raise ModelLoadError(f"Model file not found: {local}")
            return local

        cached = self._model_paths.get(model_name)
        if cached is not None and cached.exists():
            return cached

        try:
            self._models_dir.mkdir(parents=True, exist_ok=True)
            downloaded = Path(
                hf_hub_download(
                    repo_id=spec.repo_id,
                    filename=spec.filename,
                    local_dir=str(self._models_dir),
                )
            )
        except Exception as exc:
            raise ModelLoadError(
                f"Failed to fetch {model_name} from {spec.repo_id} into {self._models_dir}: {exc}"
            ) from exc

        self._model_paths[model_name] = downloaded
        logger.info("Downloaded %s to %s", model_name, downloaded)
        return downloaded

    def get_session(self, model_name: str) -> InferenceSession:
        """Return a cached InferenceSession, creating one if needed.

        Raises:
            ModelLoadError: If the model file cannot be obtained or ONNX Runtime
                rejects it.
        """
        with self._lock:
            cached = self._sessions.get(model_name)
            if cached is not None:
                return cached

        model_path = self.ensure_downloaded(model_name)
        try:
            session = InferenceSession(
                str(model_path),
                sess_options=self._session_options,
                providers=self._providers,
            )
        except Exception as exc:
            raise ModelLoadError(f"Failed to load {model_name} from {model_path}: {exc}") from exc

        with self._lock:
            # Another thread may have created it while we loaded.
            existing = self._sessions.get(model_name)
            if existing is not None:
                return existing
            self._sessions[model_name] = session
            logger.info("Loaded session for %s (providers=%s)", model_name, session.get_providers())
            return session

    def get_loaded_models(self) -> list[str]:
        """Return names of models with active sessions."""
        with self._lock:
            return list(self._sessions.keys())

    def shutdown(self) -> None:
        """Clear all cached sessions."""
        with self._lock:
            self._sessions.clear()
            logger.info("All model sessions cleared")

    # -- Internal -----------------------------------------------------------

    def _build_providers(self) -> list[str | tuple[str, dict[str, object]]]:
        device = self._settings.device
        if device == "cuda":
            return [
                (
                    "CUDAExecutionProvider",
                    {
                        "device_id": 0,
                        "gpu_mem_limit": self._settings.gpu_mem_limit,
                        "arena_extend_strategy": "kSameAsRequested",
                    },
                ),
                "CPUExecutionProvider",
            ]
        if device == "openvino":
            return [
                ("OpenVINOExecutionProvider", {"device_type": "CPU"}),
                "CPUExecutionProvider",
            ]
        return ["CPUExecutionProvider"]

    def _build_session_options(self) -> SessionOptions:
        opts = SessionOptions()
        opts.intra_op_num_threads = self._settings.intra_op_threads
        opts.inter_op_num_threads = self._settings.inter_op_threads
        opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL

        if self._settings.device == "openvino":
            # OpenVINO does its own graph optimization
            from onnxruntime import GraphOptimizationLevel

            opts.graph_optimization_level = GraphOptimizationLevel.ORT_DISABLE_ALL
        return opts
