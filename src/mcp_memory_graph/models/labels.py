"""Well-known labels, relationship types and entity names used by the task helpers."""

PROJECT_LABEL = "Project"
TASK_LABEL = "Task"
NOTE_LABEL = "Note"
COMPONENT_LABEL = "Component"
TECHNOLOGY_LABEL = "Technology"
GIT_REPOSITORY_LABEL = "GitRepository"

CONTAINS = "contains"
DEPENDS_ON = "depends_on"
RELATES_TO = "relates_to"
USES = "uses"

# Root of the self-describing metadata subgraph.
GRAPH_META_ROOT = "tech:tool:memory_graph"
GRAPH_META_DEPTH = 5
