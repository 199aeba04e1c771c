"""Compute engine that picks CPU or GPU-style solving for useful-work tasks."""

from __future__ import annotations

import enum
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from aevum.compute import ComputeEngine as _CpuEngine
from aevum.compute import ComputeTask, SubTask

_CPU_SEARCH_LIMIT = 1_000_000


class GpuVendor(enum.Enum):
    NONE = "none"
    VULKAN = "vulkan"
    CUDA = "cuda"
    METAL = "metal"
    OPENCL = "opencl"


_GPU_NAMES = {
    GpuVendor.NONE: "CPU only",
    GpuVendor.CUDA: "NVIDIA CUDA",
    GpuVendor.VULKAN: "Vulkan",
    GpuVendor.METAL: "Apple Metal",
    GpuVendor.OPENCL: "OpenCL",
}

_SEARCHING_VENDORS = (GpuVendor.CUDA, GpuVendor.VULKAN)


def detect_gpu() -> GpuVendor:
    """Guess the available accelerator from the device files and environment."""
    if os.path.exists("/dev/nvidia0"):
        return GpuVendor.CUDA
    if "VULKAN_SDK" in os.environ:
        return GpuVendor.VULKAN
    return GpuVendor.NONE


class ComputeEngine:
    """Keeps a bounded list of active jobs and solves them."""

    def __init__(self, gpu_vendor: Optional[GpuVendor] = None):
        if gpu_vendor is None:
            gpu_vendor = detect_gpu()
        self.gpu_vendor = gpu_vendor
        self.use_gpu = gpu_vendor is not GpuVendor.NONE
        self.max_concurrent = 16 if self.use_gpu else 4
        self.active_jobs: list[ComputeTask] = []
        self._cpu = _CpuEngine()
        self.sub_tasks: dict[bytes, SubTask] = self._cpu.sub_tasks

    def add_task(self, task: ComputeTask) -> None:
        """Add a job unless the engine is already at capacity."""
        if len(self.active_jobs) < self.max_concurrent:
            self.active_jobs.append(task)

    def highest_reward_task(self) -> Optional[ComputeTask]:
        """The job with the largest reward; the last one wins ties."""
        best = None
        for task in self.active_jobs:
            if best is None or task.reward >= best.reward:
                best = task
        return best

    def try_solve(self, task: ComputeTask) -> Optional[bytes]:
        """CPU search over at most the first million combinations."""
        return self.try_solve_range(task, 0, min(task.total_combinations, _CPU_SEARCH_LIMIT))

    def try_solve_range(self, task: ComputeTask, start: int, end: int) -> Optional[bytes]:
        return self._cpu.try_solve_range(task, start, end)

    def try_solve_gpu(self, task: ComputeTask) -> Optional[bytes]:
        """Full search for accelerated vendors; None when no usable GPU."""
        if not self.use_gpu or self.gpu_vendor not in _SEARCHING_VENDORS:
            return None
        return self.try_solve_range(task, 0, task.total_combinations)

    def create_subtask(
        self, task: ComputeTask, worker_index: int, total_workers: int
    ) -> Optional[SubTask]:
        return self._cpu.create_subtask(task, worker_index, total_workers)

    def spawn_gpu_worker(self, task: ComputeTask) -> Optional[Future]:
        """Run a full search in a background thread; None without a GPU."""
        if not self.use_gpu:
            return None
        vendor = self.gpu_vendor

        def work() -> Optional[bytes]:
            if vendor in _SEARCHING_VENDORS:
                return ComputeEngine(vendor).try_solve_range(task, 0, task.total_combinations)
            return None

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(work)
        executor.shutdown(wait=False)
        return future

    def active_count(self) -> int:
        return len(self.active_jobs)

    def gpu_info(self) -> str:
        return _GPU_NAMES[self.gpu_vendor]