from types import SimpleNamespace

import pytest
from flask import Flask

from uservalidator.api.errors import register_error_handlers
from uservalidator.core.document import Operation, Request
from uservalidator.core.errors import ErrorCode, UserValidationError


@pytest.fixture()
def flask_client(validator):
    app = Flask(__name__)
    app.config["TESTING"] = True
    logged = []
    app.logger = SimpleNamespace(error=lambda *args, **kwargs: logged.append(args))

    register_error_handlers(app)

    @app.route("/users/lookup/<key>")
    def lookup(key):
        result = validator.validate_lookup(Request(Operation.LOOKUP, {"key": key, "value": "v"}))
        result.raise_for_error()
        return {"ok": True}

    @app.route("/users/config")
    def config_missing():
        raise UserValidationError(ErrorCode.USER_TYPE_CONFIG_EMPTY, scope="tn")

    with app.test_client() as client:
        client.logged = logged
        yield client


def test_valid_request_passes_through(flask_client):
    response = flask_client.get("/users/lookup/email")
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}


def test_validation_error_returns_json_body(flask_client):
    response = flask_client.get("/users/lookup/nickname")
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["code"] == "invalidValue"
    assert payload["field"] == "key"
    assert payload["status"] == 400
    assert "nickname" in payload["message"]
    assert flask_client.logged == []


def test_server_side_validation_error_is_logged(flask_client):
    response = flask_client.get("/users/config")
    assert response.status_code == 500
    assert response.get_json()["code"] == "userTypeConfigIsEmpty"
    assert len(flask_client.logged) == 1


def test_other_errors_left_to_application(flask_client):
    response = flask_client.get("/missing")
    assert response.status_code == 404
    assert not response.is_json
