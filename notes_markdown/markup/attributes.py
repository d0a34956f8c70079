"""Shape-agnostic attribute access for rich-markup nodes.

Besides the Element tree built by the parser, nodes may arrive as plain
dictionaries in one of two shapes:

- order-preserving: ``{"Paragraph": [child, ...], ":@": {"@_FontSize": "23"}}``
  with text nodes as ``{"#text": "..."}``
- flat: ``{"@_FontSize": "23", "#text": "...", "Run": {...} or [...]}``

attributes_of gives every consumer the same ``name -> value`` view of all three,
and element_from_dict converts either dictionary shape into an Element.
"""

from typing import Any, Dict, List, Mapping, Optional, TypeVar, Union

from .models import Element

ATTRIBUTE_PREFIX = '@_'
ATTRIBUTE_KEY = ':@'
TEXT_KEY = '#text'

T = TypeVar('T')

Node = Union[Element, Mapping[str, Any]]


def _strip_prefixed(mapping: Mapping[str, Any]) -> Dict[str, str]:
    return {
        key[len(ATTRIBUTE_PREFIX):]: '' if value is None else str(value)
        for key, value in mapping.items()
        if key.startswith(ATTRIBUTE_PREFIX)
    }


def attributes_of(node: Optional[Node]) -> Dict[str, str]:
    """Return a node's attributes keyed by their markup name.

    Args:
        node: An Element, an order-preserving dict or a flat dict

    Returns:
        New dictionary of attribute name to string value (empty for None)
    """
    if node is None:
        return {}
    if isinstance(node, Element):
        merged = dict(node.extra_attributes)
        merged.update(node.attributes)
        return merged
    if ATTRIBUTE_KEY in node:
        return _strip_prefixed(node[ATTRIBUTE_KEY] or {})
    return _strip_prefixed(node)


def resolve(run_value: Optional[T], paragraph_value: Optional[T]) -> Optional[T]:
    """Inherit a paragraph value only when the run has none of its own.

    An empty string counts as "no value", matching how the markup writes
    unset attributes.
    """
    if run_value is None or run_value == '':
        return paragraph_value
    return run_value


def element_from_dict(node: Mapping[str, Any], name: Optional[str] = None) -> Element:
    """Convert a dictionary node of either shape into an Element.

    Args:
        node: Order-preserving or flat dictionary node
        name: Element name for flat nodes, whose name lives in the parent key

    Returns:
        The equivalent Element subtree

    Raises:
        ValueError: If an order-preserving node does not hold exactly one element key
    """
    # Flat nodes get their name from the parent key; order-preserving ones carry it
    if name is None:
        tag_keys = [key for key in node if key != ATTRIBUTE_KEY]
        if TEXT_KEY in tag_keys:
            return Element.text_node(str(node[TEXT_KEY]))
        if len(tag_keys) != 1:
            raise ValueError(f"Expected exactly one element key, got {tag_keys}")
        tag_name = tag_keys[0]
        raw_children = node[tag_name] or []
        children = [element_from_dict(child) for child in raw_children]
        return _with_text(
            Element.create(tag_name, attributes_of(node), children)
        )

    children: List[Element] = []
    text = None
    for key, value in node.items():
        if key.startswith(ATTRIBUTE_PREFIX):
            continue
        if key == TEXT_KEY:
            text = '' if value is None else str(value)
            continue
        for item in value if isinstance(value, list) else [value]:
            if isinstance(item, Mapping):
                children.append(element_from_dict(item, key))
            elif item is not None:
                children.append(Element.create(key, text=str(item)))
    if text is not None and children:
        children.insert(0, Element.text_node(text))
        text = None
    return Element.create(name, attributes_of(node), children, text)


def _with_text(element: Element) -> Element:
    # A lone text child becomes the element's own payload
    if len(element.children) == 1 and element.children[0].name == TEXT_KEY:
        element.text = element.children[0].text
        element.children = []
    return element
