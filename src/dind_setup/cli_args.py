#!/usr/bin/env python3
"""Argument parsing for the provisioner."""

import argparse
from dataclasses import dataclass


@dataclass
class Args:
    """Typed positional arguments, in the order the provisioner accepts them."""

    enable_nonroot_docker: str
    username: str
    use_moby: str
    docker_version: str
    compose_plugin_version: str
    compose_switch_version: str
    compose_v1_version: str
    verbose: bool


def parse_args(args: list[str] | None = None) -> Args:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="dind-setup",
        description="Install Docker/Moby inside an image so its containers can run nested containers, "
        "and write /usr/local/share/docker-init.sh to start the nested daemon.",
        epilog="Must run as root. Set UPDATE_RC=false to leave /etc/bash.bashrc and /etc/zsh/zshrc untouched.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "enable_nonroot_docker",
        nargs="?",
        default="true",
        help="Add the non-root user to the docker group (true/false, default: true)",
    )
    parser.add_argument(
        "username",
        nargs="?",
        default="automatic",
        help="Non-root user: auto/automatic, none, or an account name (default: automatic)",
    )
    parser.add_argument(
        "use_moby",
        nargs="?",
        default="true",
        help="Install the open-source Moby engine instead of Docker CE (true/false, default: true)",
    )
    parser.add_argument(
        "docker_version",
        nargs="?",
        default="latest",
        help="Engine/CLI version: latest, lts, stable or a full/partial version (default: latest)",
    )
    parser.add_argument(
        "compose_plugin_version",
        nargs="?",
        default="latest",
        help="Compose v2 plugin version: latest, current, lts, a version prefix or none (default: latest)",
    )
    parser.add_argument(
        "compose_switch_version",
        nargs="?",
        default="latest",
        help="compose-switch version or none (default: latest)",
    )
    parser.add_argument(
        "compose_v1_version",
        nargs="?",
        default="1",
        help="Compose v1 version or none (default: 1)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Show debug output",
    )

    # Surplus arguments are ignored
    parsed, _ = parser.parse_known_args(args)
    return Args(
        enable_nonroot_docker=parsed.enable_nonroot_docker,
        username=parsed.username,
        use_moby=parsed.use_moby,
        docker_version=parsed.docker_version,
        compose_plugin_version=parsed.compose_plugin_version,
        compose_switch_version=parsed.compose_switch_version,
        compose_v1_version=parsed.compose_v1_version,
        verbose=parsed.verbose,
    )
