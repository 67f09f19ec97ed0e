"""
Skill tree reconstruction from flat, parent-pointer rows.

Rows are client-form dicts (``id``, ``parentId``). The returned nodes are
copies carrying a ``children`` list in input order.
"""

import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional

SkillNode = Dict[str, Any]

ROOT_FALLBACK_NAME = 'Raiz'


def skill_level(progress: int) -> int:
    return int(progress) // 20 + 1


def _index_children(skills):
    children = defaultdict(list)
    for skill in skills:
        parent_id = skill.get('parentId')
        if parent_id is not None:
            children[parent_id].append(skill)
    return children


def _assemble(skill, children_index) -> SkillNode:
    node = dict(skill)
    node['children'] = [_assemble(child, children_index) for child in children_index.get(skill['id'], [])]
    return node


def build_skill_tree(skills: List[SkillNode]) -> Optional[SkillNode]:
    """
    Assemble the tree rooted at the skill without parent.

    Returns None when no row has a null parent. The caller supplies the
    fallback root in that case.
    """
    root = next((skill for skill in skills if skill.get('parentId') is None), None)
    if root is None:
        return None
    return _assemble(root, _index_children(skills))


def flatten_skill_tree(tree: Optional[SkillNode]) -> List[SkillNode]:
    """Pre-order list of the nodes of ``tree``."""
    if tree is None:
        return []
    flat = [tree]
    for child in tree.get('children', []):
        flat.extend(flatten_skill_tree(child))
    return flat


def count_nodes(tree: Optional[SkillNode]) -> int:
    return len(flatten_skill_tree(tree))


def empty_skill_tree(plan_id) -> SkillNode:
    return {
        'id': uuid.uuid4(),
        'planId': plan_id,
        'parentId': None,
        'name': ROOT_FALLBACK_NAME,
        'level': 1,
        'progress': 0,
        'isCustom': False,
        'children': [],
    }
