# Daily Ops Live Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - Ephemeral SQLite database per test run, seeded through the app factory
# - A real `flask run` process the tests talk to over HTTP
# - Failure message formatting

import os
import sys
import time
import tempfile
import subprocess
import shutil
from pathlib import Path
from typing import Generator, Optional, Dict, Any
from dataclasses import dataclass

import pytest
import httpx

# Add backend to path for imports
REPO_ROOT = Path(__file__).parent.parent
BACKEND_DIR = REPO_ROOT / "backend"
sys.path.insert(0, str(BACKEND_DIR))


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class TestConfig:
    """Test configuration with environment variable overrides."""
    backend_base_url: str = os.environ.get("TEST_BACKEND_URL", "http://127.0.0.1:5001")

    # Timeouts
    request_timeout: float = float(os.environ.get("TEST_REQUEST_TIMEOUT", "30"))
    server_startup_timeout: float = float(os.environ.get("TEST_SERVER_STARTUP_TIMEOUT", "30"))

    # Parallel identical submissions per concurrency test
    burst_size: int = int(os.environ.get("TEST_BURST_SIZE", "8"))


# =============================================================================
# FAILURE MESSAGE HELPER
# =============================================================================

class LiveFailure(Exception):
    """
    Failure with a readable report: scenario, expected, actual and the
    response body when there is one.
    """

    def __init__(
        self,
        scenario: str,
        expected: str,
        actual: str,
        response: Optional[httpx.Response] = None,
        extra_context: Optional[Dict[str, Any]] = None
    ):
        self.scenario = scenario
        self.expected = expected
        self.actual = actual
        self.response = response
        self.extra_context = extra_context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [
            "",
            "=" * 80,
            f"SCENARIO: {self.scenario}",
            f"EXPECTED: {self.expected}",
            f"ACTUAL:   {self.actual}",
        ]
        if self.response is not None:
            lines.append("-" * 80)
            lines.append(f"HTTP {self.response.request.method} {self.response.request.url}")
            lines.append(f"Body: {self.response.text[:500]}")
        for key, value in self.extra_context.items():
            lines.append(f"  {key}: {value}")
        lines.append("=" * 80)
        return "\n".join(lines)


def assert_response(response: httpx.Response, expected_status: int, scenario: str):
    if response.status_code != expected_status:
        raise LiveFailure(
            scenario=scenario,
            expected=f"HTTP {expected_status}",
            actual=f"HTTP {response.status_code}",
            response=response,
        )


# =============================================================================
# SERVER MANAGEMENT
# =============================================================================

class ServerManager:
    """
    Manages the Flask backend process for live tests.
    """

    def __init__(self, config: TestConfig):
        self.config = config
        self.process: Optional[subprocess.Popen] = None
        self.work_dir: Optional[Path] = None
        self.db_file: Optional[Path] = None
        self.seed: Dict[str, int] = {}

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_file}"

    def start(self) -> bool:
        """Seed a fresh database, then start the Flask server against it."""
        self.work_dir = Path(tempfile.mkdtemp(prefix="dailyops_live_"))
        self.db_file = self.work_dir / "dailyops_live.sqlite3"
        self.seed = self.initialize_db()

        env = os.environ.copy()
        env["DATABASE_URL"] = self.database_url
        env["BILL_STORAGE_DIR"] = str(self.work_dir / "bills")
        env["FLASK_APP"] = "wsgi"

        port = self.config.backend_base_url.rsplit(":", 1)[-1]
        self.process = subprocess.Popen(
            [sys.executable, "-m", "flask", "run", "--port", port],
            cwd=str(BACKEND_DIR),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        return self._wait_for_server()

    def _wait_for_server(self) -> bool:
        start_time = time.time()
        while time.time() - start_time < self.config.server_startup_timeout:
            try:
                response = httpx.get(f"{self.config.backend_base_url}/health", timeout=2.0)
                if response.status_code in (200, 503):
                    return True
            except (httpx.ConnectError, httpx.TimeoutException):
                pass
            time.sleep(0.5)
        return False

    def stop(self):
        if self.process:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
            self.process = None

        if self.work_dir and self.work_dir.exists():
            shutil.rmtree(self.work_dir, ignore_errors=True)

    def initialize_db(self) -> Dict[str, int]:
        """
        Create the schema and one worker, customer and product with today's
        inventory row. Returns their ids.
        """
        from dailyops import create_app
        from dailyops.extensions import db
        from dailyops.models import Customer, InventoryRecord, Product, Worker
        from dailyops.time_utils import business_day

        app = create_app({"SQLALCHEMY_DATABASE_URI": self.database_url})

        with app.app_context():
            db.create_all()

            worker = Worker(first_name="Live", last_name="Worker")
            customer = Customer(first_name="Live", last_name="Customer", classification="B2C", address1="1 Test Lane")
            product = Product(name="Milk 1L", current_price_paise=6000)
            db.session.add_all([worker, customer, product])
            db.session.commit()

            inventory = InventoryRecord(product_id=product.id, business_day=business_day(), ordered_qty=100)
            db.session.add(inventory)
            db.session.commit()

            seed = {
                "worker_id": worker.id,
                "customer_id": customer.id,
                "product_id": product.id,
                "inventory_id": inventory.id,
            }
            db.session.remove()
            db.engine.dispose()

        return seed


# =============================================================================
# PYTEST FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    return TestConfig()


@pytest.fixture(scope="session")
def server_manager(test_config: TestConfig) -> Generator[ServerManager, None, None]:
    """
    Start the server once per session.
    """
    manager = ServerManager(test_config)
    if not manager.start():
        manager.stop()
        pytest.fail("Failed to start test server")
    yield manager
    manager.stop()


@pytest.fixture(scope="session")
def seed(server_manager: ServerManager) -> Dict[str, int]:
    return server_manager.seed


@pytest.fixture
def http(test_config: TestConfig, server_manager: ServerManager) -> Generator[httpx.Client, None, None]:
    with httpx.Client(base_url=test_config.backend_base_url, timeout=test_config.request_timeout) as client:
        yield client


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "live: Tests against a running backend process")
    config.addinivalue_line("markers", "concurrent: Concurrency tests")
