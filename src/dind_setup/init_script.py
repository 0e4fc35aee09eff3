"""Rendering and installation of the container entrypoint wrapper.

The wrapper is a packaged Jinja template. Its presence at the install path
marks provisioning as complete.
"""

import logging
from importlib import resources
from pathlib import Path

from jinja2 import Environment, StrictUndefined, TemplateError as JinjaTemplateError, meta

from dind_setup.commands import CommandRunner
from dind_setup.exceptions import TemplateError
from dind_setup.settings import AZURE_DNS_SERVER, AZURE_DNS_SUFFIX, DOCKERD_LOG

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "docker-init.sh.j2"

DEFAULT_VALUES: dict[str, str] = {
    "dns_suffix": AZURE_DNS_SUFFIX,
    "dns_server": AZURE_DNS_SERVER,
    "dockerd_log": DOCKERD_LOG,
}

jinja = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    trim_blocks=False,
    lstrip_blocks=False,
)


def load_template() -> str:
    return resources.files("dind_setup").joinpath("templates").joinpath(TEMPLATE_NAME).read_text(encoding="utf-8")


def template_variables(template: str) -> set[str]:
    """Names the template refers to."""
    return meta.find_undeclared_variables(jinja.parse(template))


def render_init_script(values: dict[str, str] | None = None, template: str | None = None) -> str:
    """Render the wrapper template.

    Raises:
        TemplateError: a variable has no value, a value has no variable, or
            the template does not parse
    """
    template = load_template() if template is None else template
    values = {**DEFAULT_VALUES, **(values or {})}

    try:
        unknown = values.keys() - template_variables(template)
        if unknown:
            raise TemplateError(f"Unknown template variable(s): {', '.join(sorted(unknown))}")
        return jinja.from_string(template).render(**values)
    except JinjaTemplateError as e:
        raise TemplateError(f"Failed to render {TEMPLATE_NAME}: {e}") from e


def is_installed(path: Path) -> bool:
    return path.is_file()


def write_init_script(path: Path, owner: str, runner: CommandRunner, content: str | None = None) -> Path:
    """Write the wrapper, make it executable and hand it to ``owner:root``."""
    content = render_init_script() if content is None else content
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(0o755)
    runner.run(["chown", f"{owner}:root", str(path)])
    logger.info(f"Wrote {path}")
    return path
