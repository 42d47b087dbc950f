from .memory_service import MemoryService
from .projects import ProjectService
from .tasks import TaskService

__all__ = ["MemoryService", "ProjectService", "TaskService"]
