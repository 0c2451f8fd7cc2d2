"""Document-tree provider.

Public Interface:
    - TreeBrowsingProvider: Tree queries and mutations over a base directory
    - is_within: Boundary-safe path containment
    - doc_id_for_path / path_for_doc_id: Document id conversion
"""

from .containment import doc_id_for_path
from .containment import is_within
from .containment import path_for_doc_id
from .provider import MAX_SEARCH_RESULTS
from .provider import TreeBrowsingProvider

__all__ = [
    "TreeBrowsingProvider",
    "MAX_SEARCH_RESULTS",
    "is_within",
    "doc_id_for_path",
    "path_for_doc_id",
]
