"""
Jinja2-backed implementations of the Renderer protocol.

Generate HTML (autoescaped) or plain text (emails, reports, config files)
from a directory of templates.
"""

from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TextIO, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

FuncMap = Dict[str, Callable[..., Any]]


class TemplateRenderer:
    """Renders templates from a Jinja2 Environment."""

    def __init__(self, env: Environment):
        self.env = env

    def render(self, out: TextIO, name: str, data: Any) -> None:
        template = self.env.get_template(name)
        if data is None:
            context: Mapping[str, Any] = {}
        elif isinstance(data, Mapping):
            context = data
        else:
            context = {"data": data}
        template.stream(context).dump(out)


def _load(
    env: Environment, patterns: tuple, funcs: Optional[FuncMap]
) -> TemplateRenderer:
    if funcs:
        env.globals.update(funcs)

    if patterns:
        names = env.list_templates(
            filter_func=lambda name: any(fnmatch(name, pattern) for pattern in patterns)
        )
        if not names:
            raise TemplateNotFound(f"pattern matches no files: {', '.join(patterns)}")
        # Parse eagerly so syntax errors surface at startup.
        for name in names:
            env.get_template(name)

    return TemplateRenderer(env)


def new_html(
    directory: Union[str, Path], *patterns: str, funcs: Optional[FuncMap] = None
) -> TemplateRenderer:
    """Create a renderer for HTML templates with autoescaping enabled."""
    env = Environment(
        loader=FileSystemLoader(directory),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return _load(env, patterns, funcs)


def new_text(
    directory: Union[str, Path], *patterns: str, funcs: Optional[FuncMap] = None
) -> TemplateRenderer:
    """Create a renderer for non-HTML templates. Nothing is escaped."""
    env = Environment(
        loader=FileSystemLoader(directory),
        autoescape=False,
        keep_trailing_newline=True,
    )
    return _load(env, patterns, funcs)


__all__ = ["FuncMap", "TemplateRenderer", "new_html", "new_text"]
