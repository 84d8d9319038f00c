# Daily Ops live test suite
#
# API tests (pytest + httpx) against a real `flask run` process.
#
# Run with: pytest tests
