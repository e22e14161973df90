"""Constants shared across the repository migrator."""

# Organizations and naming
DEFAULT_SOURCE_ORG = "cdktf"
DEFAULT_TARGET_ORG = "cdktn-io"
DEFAULT_SOURCE_PREFIX = "cdktf-"
DEFAULT_TARGET_PREFIX = "cdktn-"
DEFAULT_REPOSITORY_RESOURCE_TYPE = "github_repository"
DEFAULT_VISIBILITY = "public"
DEFAULT_BRANCH = "main"

# Input and output files
DEFAULT_SNAPSHOT_FILENAME = "cdk.tf.json"
DEFAULT_ARTIFACT_FILENAME = "import.tf"
DEFAULT_CONFIG_FILENAME = "migrator.yaml"
REPORT_FILENAME = "migration_report.yaml"
OUTPUT_ROOT = "migration_logs"

# Timing
CREATION_POLL_ATTEMPTS = 10
CREATION_POLL_INTERVAL = 2.0
INTER_REPOSITORY_DELAY = 5.0

# Service identity and legacy references
LEGACY_TEAM = "team-tf-cdk"
LEGACY_EMAIL = "github-team-tf-cdk@hashicorp.com"
LEGACY_OWNER_HANDLE = "@cdktf/tf-cdk-team"
SERVICE_ACCOUNT_NAME = "team-cdk-terrain[bot]"
SERVICE_ACCOUNT_USER_ID = "254218809"
SERVICE_ACCOUNT_EMAIL = (
    f"{SERVICE_ACCOUNT_USER_ID}-{SERVICE_ACCOUNT_NAME}@users.noreply.github.com"
)
OWNER_HANDLE = "@cdktn-io/team-cdk-terrain"

WORKFLOW_FILE_GLOBS = (".github/workflows/*.yml", ".github/workflows/*.yaml")
OWNERSHIP_FILE = ".github/CODEOWNERS"

# Follow-up provider migration
PROVIDER_INFIX = "provider-"
MIGRATE_PROVIDER_WORKFLOW = "migrate-provider.yml"

# GitHub API
GITHUB_HOST = "github.com"
GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
REQUEST_TIMEOUT = 30

# Exit codes
EXIT_FAILURE = 1
