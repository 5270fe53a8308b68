import os
import sys
from pathlib import Path

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("STATE_BACKEND", "memory")
os.environ.setdefault("PERMISSIONS_BACKEND", "memory")

from workback.permissions.repository import InMemoryPermissionRepository  # noqa: E402
from workback.permissions.service import PermissionService, set_permission_service  # noqa: E402
from workback.state_store.repository import InMemoryStateRepository  # noqa: E402
from workback.state_store.service import StateService, set_state_service  # noqa: E402

set_permission_service(PermissionService(repo=InMemoryPermissionRepository()))
set_state_service(StateService(repo=InMemoryStateRepository()))
