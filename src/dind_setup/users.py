"""Non-root user selection and docker group membership."""

import grp
import logging
import pwd

from dind_setup.commands import CommandRunner
from dind_setup.settings import CANDIDATE_USERS, FALLBACK_UID

logger = logging.getLogger(__name__)

AUTOMATIC = ("auto", "automatic")
ROOT = "root"
DOCKER_GROUP = "docker"


class AccountDatabase:
    """Read access to the local user and group databases."""

    def user_exists(self, name: str) -> bool:
        try:
            pwd.getpwnam(name)
        except KeyError:
            return False
        return True

    def user_for_uid(self, uid: int) -> str | None:
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            return None

    def group_exists(self, name: str) -> bool:
        try:
            grp.getgrnam(name)
        except KeyError:
            return False
        return True


def resolve_username(requested: str, accounts: AccountDatabase | None = None) -> str:
    """Pick the account that gets docker access.

    ``auto``/``automatic`` try vscode, node, codespace and then whoever owns
    uid 1000. ``none`` and unknown names fall back to root.
    """
    accounts = accounts or AccountDatabase()

    if requested in AUTOMATIC:
        candidates = list(CANDIDATE_USERS)
        uid_owner = accounts.user_for_uid(FALLBACK_UID)
        if uid_owner:
            candidates.append(uid_owner)
        for candidate in candidates:
            if accounts.user_exists(candidate):
                return candidate
        return ROOT

    if requested == "none" or not accounts.user_exists(requested):
        return ROOT
    return requested


def grant_docker_access(username: str, runner: CommandRunner, accounts: AccountDatabase | None = None) -> None:
    """Create the docker group if needed and add ``username`` to it."""
    accounts = accounts or AccountDatabase()
    if not accounts.group_exists(DOCKER_GROUP):
        logger.info(f"Creating {DOCKER_GROUP} group")
        runner.run(["groupadd", DOCKER_GROUP])
    logger.info(f"Adding {username} to the {DOCKER_GROUP} group")
    runner.run(["usermod", "-aG", DOCKER_GROUP, username])
