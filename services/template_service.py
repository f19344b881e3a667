"""
Rendering of question text and report templates

Templates are Jinja templates rendered in a sandbox with a single variable,
``context``, holding ``input`` (the user's attributes keyed by id) and
``user`` (the user's profile), e.g. ``Hi {{ context.user.name }}!``.
"""
import logging
from typing import Any, Dict

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from errors import BackendError

logger = logging.getLogger(__name__)

_text_environment = SandboxedEnvironment(autoescape=False)
_html_environment = SandboxedEnvironment(autoescape=True)


def _render(environment: SandboxedEnvironment, template: str, input: Dict[str, Any], user: Dict[str, Any]) -> str:
    try:
        return environment.from_string(template).render(context={"input": input, "user": user})
    except TemplateError as e:
        logger.error(f"[TEMPLATE] Failed to render template: {e}")
        raise BackendError("Could not render the template.") from e


def render_text(template: str, input: Dict[str, Any], user: Dict[str, Any]) -> str:
    """Render a question's text"""
    return _render(_text_environment, template, input, user)


def render_html(template: str, input: Dict[str, Any], user: Dict[str, Any]) -> str:
    """Render a report, escaping interpolated values"""
    return _render(_html_environment, template, input, user)
