"""
Template rendering for outgoing messages.
"""
from jinja2 import Environment, BaseLoader, select_autoescape


_env = Environment(
    loader=BaseLoader(),
    autoescape=select_autoescape(default_for_string=True, default=True),
    trim_blocks=True,
    lstrip_blocks=True
)


def render_template_string(template_string: str, **context) -> str:
    """
    Render a template string with the given context.

    Args:
        template_string: Template string to render
        context: Variables to use in the template

    Returns:
        Rendered string, with context values HTML-escaped
    """
    template = _env.from_string(template_string)
    return template.render(**context)
