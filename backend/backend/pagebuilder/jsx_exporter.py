"""
Render a page's component tree as a React JSX module.
"""

import json
import re

from .component_tree import ComponentTree, ContainerComponent, ICON, IMAGE, TEXT

INDENT = '  '


_IDENTIFIER = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')


def _style_key(key):
    return key if _IDENTIFIER.match(key) else json.dumps(key)


def _style_literal(style):
    if not style:
        return ''
    pairs = ', '.join(f"{_style_key(key)}: {json.dumps(value)}" for key, value in style.items())
    return f" style={{{{ {pairs} }}}}"


def _escape_text(text):
    return (
        text.replace('&', '&amp;')
        .replace('<', '&lt;')
        .replace('>', '&gt;')
        .replace('{', '&#123;')
        .replace('}', '&#125;')
    )


def _attr(value):
    return json.dumps(value or '')


def render_component(component, depth=2):
    pad = INDENT * depth
    style = _style_literal(component.style)

    if component.type == TEXT:
        return [f"{pad}<p{style}>{_escape_text(component.content)}</p>"]

    if component.type == IMAGE:
        return [f"{pad}<img src={_attr(component.src)} alt={_attr(component.alt)}{style} />"]

    if component.type == ICON:
        size = f" data-size={{{component.size}}}" if component.size is not None else ''
        color = f" data-color={_attr(component.color)}" if component.color else ''
        return [f"{pad}<i className={_attr('icon icon-' + component.icon_name)}{size}{color}{style} />"]

    if isinstance(component, ContainerComponent):
        lines = [f"{pad}<div className={_attr(component.type)}{style}>"]
        for child in component.children:
            lines.extend(render_component(child, depth + 1))
        lines.append(f"{pad}</div>")
        return lines

    return []


def component_name(slug):
    parts = [part for part in re.split(r'[^0-9a-zA-Z]+', slug) if part]
    name = ''.join(part[:1].upper() + part[1:] for part in parts) or 'Page'
    if name[0].isdigit():
        name = f"Page{name}"
    return name


def render_page_jsx(page):
    """Generate React JSX code from a page's component tree"""
    tree = ComponentTree.from_list(page.components)
    body = []
    for component in tree.components:
        body.extend(render_component(component, depth=3))

    name = component_name(page.slug)
    components_str = '\n'.join(body)

    return f"""import React from 'react';

const {name} = () => {{
  return (
    <div className="page-container">
{components_str}
    </div>
  );
}};

export default {name};
"""
