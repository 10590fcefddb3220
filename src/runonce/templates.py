"""Agent templates: immutable per-class launch configuration."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from enum import Enum
from typing import Any

from runonce.errors import ConfigurationError

DEFAULT_SSH_PORT = "ssh"


class LaunchMethod(str, Enum):
    SSH = "ssh"
    JNLP = "jnlp"

    @classmethod
    def parse(cls, raw: str) -> LaunchMethod:
        try:
            return cls(raw.strip().lower())
        except (AttributeError, ValueError):
            raise ConfigurationError(f"Unknown launch method: {raw!r}") from None


@dataclass(frozen=True)
class Template:
    """How agents of one class are reached once their VM is up."""

    name: str
    launch_method: LaunchMethod
    cloud_name: str = ""

    # SSH
    credentials_id: str = ""
    java_args: str = ""
    # Logical name of the forwarded port that reaches the guest's sshd.
    ssh_port: str = DEFAULT_SSH_PORT

    # JNLP
    jnlp_tunnel: str = ""
    extra_args: str = ""

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Template:
        if "name" not in data:
            raise ConfigurationError("Template is missing 'name'")
        if "launch_method" not in data:
            raise ConfigurationError(f"Template {data['name']} is missing 'launch_method'")
        return Template(
            name=data["name"],
            launch_method=LaunchMethod.parse(data["launch_method"]),
            cloud_name=data.get("cloud_name", ""),
            credentials_id=data.get("credentials_id", ""),
            java_args=data.get("java_args", ""),
            ssh_port=data.get("ssh_port", DEFAULT_SSH_PORT),
            jnlp_tunnel=data.get("jnlp_tunnel", ""),
            extra_args=data.get("extra_args", ""),
        )


def load_templates(path: str) -> dict[str, Template]:
    """Load templates from a TOML file with one ``[[template]]`` table per entry."""
    with open(path, "rb") as f:
        data = tomllib.load(f)
    templates: dict[str, Template] = {}
    for raw in data.get("template", []):
        template = Template.from_dict(raw)
        templates[template.name] = template
    return templates
