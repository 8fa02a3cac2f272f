"""
Undirected conflict graph over scheduling tasks.
"""
from typing import Dict, List, Optional, Set
from models.schemas import Task


class ConstraintGraph:
    """
    Records which tasks cannot share a slot.
    
    Two tasks of the same batch conflict, since a batch cannot attend two
    subjects at once. Node degree is used as a priority signal only.
    """
    
    def __init__(self):
        self.nodes: Dict[str, Task] = {}
        self.edges: Dict[str, Set[str]] = {}
    
    def add_node(self, task: Task):
        self.nodes[task.task_id] = task
        self.edges.setdefault(task.task_id, set())
    
    def add_edge(self, task_id1: str, task_id2: str):
        """Add an undirected conflict between two tasks."""
        self.edges.setdefault(task_id1, set()).add(task_id2)
        self.edges.setdefault(task_id2, set()).add(task_id1)
    
    def get_conflicts(self, task_id: str) -> Set[str]:
        return self.edges.get(task_id, set())
    
    def get_constraint_count(self, task_id: str) -> int:
        return len(self.edges.get(task_id, ()))
    
    def get_task(self, task_id: str) -> Optional[Task]:
        return self.nodes.get(task_id)
    
    def get_all_tasks(self) -> List[Task]:
        return list(self.nodes.values())
    
    def get_task_ids(self) -> List[str]:
        return list(self.nodes.keys())
