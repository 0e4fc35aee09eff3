"""Configuration settings for dind-setup."""

# Central settings published for the dev container script library
COMMON_SETTINGS_URL = "https://aka.ms/vscode-dev-containers/script-library/settings.env"

# Package repository signing keys
MICROSOFT_GPG_KEYS_URI = "https://packages.microsoft.com/keys/microsoft.asc"
DOCKER_GPG_KEYS_URI_TEMPLATE = "https://download.docker.com/linux/{os_id}/gpg"

# Release sources
COMPOSE_REPOSITORY = "https://github.com/docker/compose"
COMPOSE_SWITCH_REPOSITORY = "https://github.com/docker/compose-switch"

# Filesystem locations
INIT_SCRIPT_PATH = "/usr/local/share/docker-init.sh"
KEYRINGS_DIR = "/usr/share/keyrings"
SOURCES_LIST_DIR = "/etc/apt/sources.list.d"
APT_LISTS_DIR = "/var/lib/apt/lists"
LOCAL_BIN_DIR = "/usr/local/bin"
COMPOSE_PLUGIN_DIR = "/usr/local/lib/docker/cli-plugins"
COMPOSE_PLUGIN_SEARCH_DIRS = (
    "/usr/local/lib/docker/cli-plugins",
    "/usr/local/libexec/docker/cli-plugins",
    "/usr/lib/docker/cli-plugins",
    "/usr/libexec/docker/cli-plugins",
)
RC_FILES = ("/etc/bash.bashrc", "/etc/zsh/zshrc")
DOWNLOAD_DIR = "/tmp"

# Environment variables
UPDATE_RC = "UPDATE_RC"

# Accounts tried, in order, when the username is "auto"/"automatic"
CANDIDATE_USERS = ("vscode", "node", "codespace")
FALLBACK_UID = 1000

# Init wrapper defaults
AZURE_DNS_SUFFIX = "internal.cloudapp.net"
AZURE_DNS_SERVER = "168.63.129.16"
DOCKERD_LOG = "/tmp/dockerd.log"

HTTP_TIMEOUT = 60.0
