"""Load user-supplied template files into a :class:`~swagpipe.models.TemplateSet`.

Templates are loaded once, at configuration time, so that a wrong path is
reported before any document is processed. A caller may give a single path
(the ``class`` template) or a :class:`~swagpipe.models.TemplatePaths` with
any subset of the ``class``, ``method`` and ``request`` fragments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from swagpipe.exceptions import ConfigError
from swagpipe.models import TemplatePaths, TemplateSet


def load_template_file(template_file: Optional[str], template_name: str) -> str:
    """Return the content of *template_file*.

    Args:
        template_file: Path of the template, or ``None``/``""`` when the
            fragment is not used.
        template_name: Fragment name used in the error message.

    Returns:
        The template text, or ``""`` when no path was given.

    Raises:
        ConfigError: If the file cannot be read or is empty.
    """
    if not template_file:
        return ""

    try:
        content = Path(template_file).read_text(encoding="utf-8")
    except OSError:
        content = ""

    if not content:
        raise ConfigError(
            f"Could not load {template_name} template file. "
            "Please make sure path to file is correct."
        )
    return content


def normalize_template(template: Union[str, TemplatePaths, None]) -> TemplateSet:
    """Load *template* into a :class:`~swagpipe.models.TemplateSet`.

    A single path becomes the ``class`` fragment with empty ``method`` and
    ``request`` fragments.
    """
    if template is None:
        return TemplateSet()
    if isinstance(template, str):
        return TemplateSet(class_=load_template_file(template, "class"))
    return TemplateSet(
        class_=load_template_file(template.class_, "class"),
        method=load_template_file(template.method, "method"),
        request=load_template_file(template.request, "request"),
    )
