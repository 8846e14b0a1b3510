"""
Backend selection and dispatch for the particle kernels.

Supports three backends:
1. CPU (NumPy) - Always available, reference implementation
2. Numba - JIT-compiled parallel-for over the dispatch width
3. GPU (PyTorch) - CUDA tensors, whole-array phases

Kernels register themselves per backend with `backend_function` and
`for_backend`; `dispatch` picks the current (or an explicit) backend and
falls back to the CPU kernel when a backend has no implementation.
"""

import enum
import logging
import warnings
from typing import Optional, Dict, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class Backend(enum.Enum):
    """Available computation backends."""
    CPU = "cpu"      # NumPy (always available)
    NUMBA = "numba"  # Numba JIT
    GPU = "gpu"      # PyTorch/CUDA


@dataclass
class BackendInfo:
    available: bool
    device_name: str = "unavailable"


def _probe_numba() -> BackendInfo:
    try:
        import numba
    except ImportError:
        return BackendInfo(available=False)
    return BackendInfo(available=True, device_name=f"CPU (Numba {numba.__version__})")


def _probe_gpu() -> BackendInfo:
    try:
        import torch
    except ImportError:
        return BackendInfo(available=False)
    if not torch.cuda.is_available():
        return BackendInfo(available=False, device_name="no CUDA device")
    return BackendInfo(available=True, device_name=f"{torch.cuda.get_device_name(0)} (PyTorch)")


class BackendManager:
    """Backend availability, the current selection, and the kernel registry."""

    # Attraction is O(N²) per step, so parallel backends pay off early
    NUMBA_THRESHOLD = 500
    GPU_THRESHOLD = 20000

    def __init__(self):
        self.current = Backend.CPU
        self.backends: Dict[Backend, BackendInfo] = {
            Backend.CPU: BackendInfo(available=True, device_name="CPU (NumPy)"),
            Backend.NUMBA: _probe_numba(),
            Backend.GPU: _probe_gpu(),
        }
        self._implementations: Dict[str, Dict[Backend, Callable]] = {}

    def set_backend(self, backend: Backend) -> bool:
        if not self.backends[backend].available:
            warnings.warn(f"Backend {backend.value} not available, keeping {self.current.value}")
            return False

        self.current = backend
        logger.info("Backend set to: %s", self.backends[backend].device_name)
        return True

    def auto_select_backend(self, n_particles: int) -> Backend:
        if self.backends[Backend.GPU].available and n_particles > self.GPU_THRESHOLD:
            return Backend.GPU
        if self.backends[Backend.NUMBA].available and n_particles > self.NUMBA_THRESHOLD:
            return Backend.NUMBA
        return Backend.CPU

    def register(self, function_name: str, backend: Backend, implementation: Callable):
        self._implementations.setdefault(function_name, {})[backend] = implementation

    def get_implementation(self, function_name: str,
                           backend: Optional[Backend] = None) -> Callable:
        """Kernel for `function_name` on `backend` (None for current).

        Raises:
            ValueError: If no kernel, not even a CPU one, is registered
        """
        backend = backend or self.current
        kernels = self._implementations.get(function_name)
        if not kernels:
            raise ValueError(f"No implementations registered for {function_name}")

        if backend in kernels:
            return kernels[backend]
        if Backend.CPU in kernels:
            warnings.warn(f"No {backend.value} implementation for {function_name}, using CPU")
            return kernels[Backend.CPU]
        raise ValueError(f"No implementation found for {function_name}")

    def info_lines(self) -> list:
        lines = ["Particle Compute Backend Information", "=" * 60]
        for backend, info in self.backends.items():
            status = "+" if info.available else "-"
            lines.append(f"{status} {backend.value:6s}: {info.device_name}")
        lines.append(f"Current backend: {self.current.value}")
        lines.append("=" * 60)
        return lines


# Global backend manager instance
_backend_manager = BackendManager()


def set_backend(backend: str) -> bool:
    """Set the global backend.

    Args:
        backend: 'cpu', 'numba', or 'gpu'

    Returns:
        True if successful
    """
    try:
        backend_enum = Backend(backend.lower())
    except ValueError:
        warnings.warn(f"Invalid backend: {backend}. Choose from: cpu, numba, gpu")
        return False
    return _backend_manager.set_backend(backend_enum)


def get_backend() -> str:
    return _backend_manager.current.value


def list_backends() -> Dict[str, bool]:
    """Backend name -> availability."""
    return {b.value: info.available for b, info in _backend_manager.backends.items()}


def auto_select_backend(n_particles: int) -> str:
    """Select and activate the best backend for a particle count."""
    backend = _backend_manager.auto_select_backend(n_particles)
    _backend_manager.set_backend(backend)
    return backend.value


def print_backend_info():
    for line in _backend_manager.info_lines():
        logger.info(line)


def backend_function(function_name: str):
    """Decorator to register backend-specific implementations.

    Usage:
        @backend_function("compute_forces")
        @for_backend(Backend.NUMBA)
        def compute_forces_numba(...):
            ...
    """
    def decorator(func):
        if hasattr(func, '_backend'):
            _backend_manager.register(function_name, func._backend, func)
        return func
    return decorator


def for_backend(backend: Backend):
    """Tag a kernel with the backend it runs on."""
    def decorator(func):
        func._backend = backend
        return func
    return decorator


def dispatch(function_name: str, *args, backend: Optional[str] = None, **kwargs):
    """Call the kernel registered for `function_name` on `backend` (None for current)."""
    backend_enum = Backend(backend) if backend else None
    return _backend_manager.get_implementation(function_name, backend_enum)(*args, **kwargs)
