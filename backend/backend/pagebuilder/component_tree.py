"""
Component Tree
Typed page-builder components and identifier-addressed CRUD over a forest
of them. Lookups, updates and deletes work at any depth; identifiers are
unique across the whole tree.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Dict, Iterator, List, Optional, Set, Tuple, Union

from common.errors import NotFoundError, ValidationError

TEXT = 'text'
IMAGE = 'image'
ICON = 'icon'
CONTAINER = 'container'
ROW = 'row'
COLUMN = 'column'

COMPONENT_TYPES = (TEXT, IMAGE, ICON, CONTAINER, ROW, COLUMN)
CONTAINER_TYPES = (CONTAINER, ROW, COLUMN)
POSITION_KEYS = ('x', 'y', 'zIndex')

ID_PREFIX = 'comp-'
_ID_PATTERN = re.compile(r'^comp-(\d+)$')

StyleValue = Union[str, int, float]


@dataclass
class Component:
    id: str
    style: Optional[Dict[str, StyleValue]] = None
    position: Optional[Dict[str, float]] = None

    type: ClassVar[str] = ''
    # wire name -> attribute name
    variant_fields: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    def variant_values(self) -> Dict:
        return {wire: getattr(self, attr) for wire, attr in self.variant_fields}

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'type': self.type}
        for wire, value in self.variant_values().items():
            if value is not None:
                data[wire] = value
        if self.style is not None:
            data['style'] = dict(self.style)
        if self.position is not None:
            data['position'] = dict(self.position)
        return data


@dataclass
class TextComponent(Component):
    content: str = ''

    type: ClassVar[str] = TEXT
    variant_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (('content', 'content'),)


@dataclass
class ImageComponent(Component):
    src: str = ''
    alt: Optional[str] = None

    type: ClassVar[str] = IMAGE
    variant_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (('src', 'src'), ('alt', 'alt'))


@dataclass
class IconComponent(Component):
    icon_name: str = ''
    size: Optional[float] = None
    color: Optional[str] = None

    type: ClassVar[str] = ICON
    variant_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ('iconName', 'icon_name'), ('size', 'size'), ('color', 'color'),
    )


@dataclass
class ContainerComponent(Component):
    """Shared by the container, row and column tags; only these hold children"""
    kind: str = CONTAINER
    children: List[Component] = field(default_factory=list)

    @property
    def type(self):
        return self.kind

    def variant_values(self) -> Dict:
        return {}

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data['children'] = [child.to_dict() for child in self.children]
        return data


VARIANT_CLASSES = {
    TEXT: TextComponent,
    IMAGE: ImageComponent,
    ICON: IconComponent,
}

# Fields that fall back to '' when the payload omits them
REQUIRED_STRING_FIELDS = {'content', 'src', 'iconName'}


def _validate_type(tag):
    if tag not in COMPONENT_TYPES:
        raise ValidationError(
            f"Invalid component type: {tag!r}. Allowed types: {', '.join(COMPONENT_TYPES)}"
        )
    return tag


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _clean_style(style):
    if style is None:
        return None
    if not isinstance(style, dict):
        raise ValidationError('Component style must be an object')
    for key, value in style.items():
        if not isinstance(key, str) or not (isinstance(value, str) or _is_number(value)):
            raise ValidationError(f"Invalid style value for {key!r}: must be a string or number")
    return dict(style)


def _clean_position(position):
    if position is None:
        return None
    if not isinstance(position, dict):
        raise ValidationError('Component position must be an object')
    cleaned = {}
    for key in POSITION_KEYS:
        value = position.get(key)
        if value is None:
            continue
        if not _is_number(value):
            raise ValidationError(f"Position {key} must be a number")
        cleaned[key] = value
    return cleaned


def _clean_variant_value(wire, value):
    if value is None:
        return None
    if wire == 'size':
        if not _is_number(value):
            raise ValidationError('Icon size must be a number')
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Component {wire} must be a string")
    return value


def make_component(tag, component_id, style=None, position=None, values=None, children=None):
    """
    Build one node of the requested variant.
    Fields that do not belong to the variant are dropped; children on a
    non-container tag are rejected.
    """
    _validate_type(tag)
    values = values or {}
    style = _clean_style(style)
    position = _clean_position(position)

    if tag in CONTAINER_TYPES:
        return ContainerComponent(
            id=component_id, style=style, position=position,
            kind=tag, children=list(children or []),
        )

    if children:
        raise ValidationError(f"Component type '{tag}' cannot have children")

    cls = VARIANT_CLASSES[tag]
    kwargs = {}
    for wire, attr in cls.variant_fields:
        value = _clean_variant_value(wire, values.get(wire))
        if value is None and wire in REQUIRED_STRING_FIELDS:
            value = ''
        kwargs[attr] = value
    return cls(id=component_id, style=style, position=position, **kwargs)


def component_from_dict(data, assign_id: Optional[Callable[[Optional[str]], str]] = None) -> Component:
    """
    Build a component (and its subtree) from its wire form.

    assign_id receives each node's incoming id (or None) and returns the id
    to use; without it every node must already carry an id.
    """
    if not isinstance(data, dict):
        raise ValidationError('Component must be an object')

    component_id = data.get('id')
    if component_id is not None and (not isinstance(component_id, str) or not component_id):
        raise ValidationError('Component id must be a non-empty string')
    if assign_id is not None:
        component_id = assign_id(component_id)
    elif component_id is None:
        raise ValidationError('Component id is required')

    tag = _validate_type(data.get('type'))
    raw_children = data.get('children')
    if raw_children is not None and not isinstance(raw_children, list):
        raise ValidationError('Component children must be a list')
    if raw_children and tag not in CONTAINER_TYPES:
        raise ValidationError(f"Component type '{tag}' cannot have children")

    children = None
    if tag in CONTAINER_TYPES:
        children = [component_from_dict(child, assign_id) for child in raw_children or []]

    return make_component(
        tag, component_id,
        style=data.get('style'),
        position=data.get('position'),
        values=data,
        children=children,
    )


def _collect_raw_ids(items, seen):
    """Gather the explicit ids of raw component dicts, rejecting duplicates"""
    for item in items or []:
        if not isinstance(item, dict):
            continue
        component_id = item.get('id')
        if isinstance(component_id, str) and component_id:
            if component_id in seen:
                raise ValidationError(f"Duplicate component ID: {component_id}")
            seen.add(component_id)
        children = item.get('children')
        if isinstance(children, list):
            _collect_raw_ids(children, seen)
    return seen


class ComponentTree:
    """
    Ordered forest of components.

    Nodes are mutated in place and no lock is taken: callers sharing one tree
    across threads must serialize access themselves.
    """

    def __init__(self, components: Optional[List[Component]] = None):
        self.components: List[Component] = list(components or [])
        self._next_number = 1
        taken = set()
        for node in self.walk():
            if node.id in taken:
                raise ValidationError(f"Duplicate component ID: {node.id}")
            taken.add(node.id)
        self._sync_counter(taken)

    @classmethod
    def from_list(cls, items) -> 'ComponentTree':
        """Load a tree from wire dicts, assigning ids to nodes that lack one"""
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ValidationError('Components must be a list')
        tree = cls()
        taken = _collect_raw_ids(items, set())
        tree._sync_counter(taken)

        def assign(component_id):
            if component_id is not None:
                return component_id
            return tree._fresh_id(taken)

        tree.components = [component_from_dict(item, assign) for item in items]
        return tree

    def to_list(self) -> List[Dict]:
        return [node.to_dict() for node in self.components]

    # Traversal

    def walk(self, components: Optional[List[Component]] = None) -> Iterator[Component]:
        """Pre-order: a node, then its children in order, then its next sibling"""
        for node in self.components if components is None else components:
            yield node
            if isinstance(node, ContainerComponent):
                yield from self.walk(node.children)

    def ids(self) -> Set[str]:
        return {node.id for node in self.walk()}

    def _locate(self, components: List[Component], component_id: str) -> Optional[Tuple[List[Component], int]]:
        """Return the list holding the node and its index, or None"""
        for index, node in enumerate(components):
            if node.id == component_id:
                return components, index
            if isinstance(node, ContainerComponent):
                found = self._locate(node.children, component_id)
                if found is not None:
                    return found
        return None

    # Id generation

    def _sync_counter(self, taken):
        for component_id in taken:
            match = _ID_PATTERN.match(component_id)
            if match:
                self._next_number = max(self._next_number, int(match.group(1)) + 1)

    def _fresh_id(self, taken: Set[str]) -> str:
        while True:
            candidate = f"{ID_PREFIX}{self._next_number}"
            self._next_number += 1
            if candidate not in taken:
                taken.add(candidate)
                return candidate

    def _id_assigner(self, taken: Set[str], fresh_root: bool = False):
        """
        Assign ids for a new subtree. Nodes keep their own id unless it is
        already taken; with fresh_root the first node always gets a new one.
        """
        state = {'root': fresh_root}

        def assign(component_id):
            if state['root']:
                state['root'] = False
                return self._fresh_id(taken)
            if component_id is None:
                return self._fresh_id(taken)
            if component_id in taken:
                raise ValidationError(f"Duplicate component ID: {component_id}")
            taken.add(component_id)
            return component_id

        return assign

    # CRUD

    def create(self, data: Dict) -> Component:
        if not isinstance(data, dict):
            raise ValidationError('Component must be an object')
        taken = self.ids()
        node = component_from_dict(data, self._id_assigner(taken, fresh_root=True))
        self.components.append(node)
        return node

    def get(self, component_id: str) -> Optional[Component]:
        location = self._locate(self.components, component_id)
        if location is None:
            return None
        siblings, index = location
        return siblings[index]

    def find_by_id(self, component_id: str) -> Component:
        node = self.get(component_id)
        if node is None:
            raise NotFoundError(f"Component with ID {component_id} not found")
        return node

    def update(self, component_id: str, patch: Dict) -> Component:
        if not isinstance(patch, dict):
            raise ValidationError('Component update must be an object')
        location = self._locate(self.components, component_id)
        if location is None:
            raise NotFoundError(f"Component with ID {component_id} not found")
        siblings, index = location
        current = siblings[index]

        tag = patch.get('type') or current.type
        _validate_type(tag)

        style = current.style
        if patch.get('style') is not None:
            style = {**(current.style or {}), **_clean_style(patch['style'])}

        position = current.position
        if patch.get('position') is not None:
            position = patch['position']

        old_values = current.variant_values()
        values = {}
        cls = VARIANT_CLASSES.get(tag)
        for wire, _attr in (cls.variant_fields if cls else ()):
            value = patch.get(wire)
            values[wire] = value if value is not None else old_values.get(wire)

        children = None
        if tag in CONTAINER_TYPES:
            if patch.get('children') is not None:
                if not isinstance(patch['children'], list):
                    raise ValidationError('Component children must be a list')
                replaced = {node.id for node in self.walk([current])}
                taken = (self.ids() - replaced) | {current.id}
                assign = self._id_assigner(taken)
                children = [component_from_dict(child, assign) for child in patch['children']]
            elif isinstance(current, ContainerComponent):
                children = current.children
            else:
                children = []
        elif patch.get('children'):
            raise ValidationError(f"Component type '{tag}' cannot have children")

        updated = make_component(
            tag, current.id,
            style=style, position=position, values=values, children=children,
        )
        siblings[index] = updated
        return updated

    def remove(self, component_id: str) -> Component:
        location = self._locate(self.components, component_id)
        if location is None:
            raise NotFoundError(f"Component with ID {component_id} not found")
        siblings, index = location
        return siblings.pop(index)

    # Listing (top level only)

    def list_all(self) -> List[Component]:
        return list(self.components)

    def find_by_type(self, tag: str) -> List[Component]:
        _validate_type(tag)
        return [node for node in self.components if node.type == tag]

    @staticmethod
    def available_types() -> List[str]:
        return list(COMPONENT_TYPES)


class ComponentStore(ComponentTree):
    """Process-wide tree behind the standalone /components API"""

    @classmethod
    def with_samples(cls) -> 'ComponentStore':
        return cls(sample_components())


def sample_components() -> List[Component]:
    return [
        TextComponent(
            id='comp-1',
            content='Sample Text Component',
            style={'fontSize': '16px', 'color': '#333333', 'padding': '10px'},
        ),
        ImageComponent(
            id='comp-2',
            src='/images/sample.jpg',
            alt='Sample Image',
            style={'width': '100%', 'height': 'auto', 'borderRadius': '8px'},
        ),
        IconComponent(
            id='comp-3',
            icon_name='heart',
            size=24,
            color='#ff0000',
            style={'padding': '10px'},
        ),
        ContainerComponent(
            id='comp-4',
            kind=CONTAINER,
            children=[
                TextComponent(id='comp-5', content='Nested Text Component'),
                ImageComponent(id='comp-6', src='/images/nested.jpg', alt='Nested Image'),
            ],
            style={
                'display': 'flex',
                'flexDirection': 'column',
                'gap': '20px',
                'padding': '20px',
                'backgroundColor': '#f5f5f5',
            },
        ),
    ]
