"""
Book Club API tests.

conftest.py builds a fresh in-memory SQLite database per test and a
TestClient bound to it. The leave protocol (test_leave_protocol.py) is
tested at the service layer; everything else goes through HTTP.

    pytest
    pytest tests/test_leave_protocol.py -k transfer
"""
