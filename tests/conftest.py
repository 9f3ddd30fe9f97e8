"""
Pytest configuration and shared fixtures for the sdkgen test suite.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from sdkgen.config import get_settings

CONFIG_VARS = (
    "CODEGEN_ENUM_LIMIT",
    "CODEGEN_ENUM_UNIONS",
    "OPENAPI_ADAPTER_FALLBACK",
    "CODEGEN_PERF_IGNORE",
    "CODEGEN_CACHE_DIR",
    "GITHUB_ACTIONS",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test without sdkgen env vars, from an empty working directory."""
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_gen_logging():
    """Undo configure_gen_logging() so caplog sees pipeline records."""
    def _reset():
        root = logging.getLogger("sdkgen.gen")
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.propagate = True
        root.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture
def temp_output_dir():
    """Create a temporary directory for generated code output."""
    temp_dir = tempfile.mkdtemp(prefix="sdkgen_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def settings(tmp_path):
    """Settings with the performance cache kept inside the test directory."""
    return get_settings(CODEGEN_CACHE_DIR=str(tmp_path / "cache"))


@pytest.fixture
def write_description(tmp_path):
    """Factory fixture to write a description document (YAML or JSON) to disk."""
    def _write(data, filename: str = "openapi.yaml") -> Path:
        file_path = tmp_path / filename
        if filename.endswith(".json"):
            file_path.write_text(json.dumps(data, indent=2))
        else:
            file_path.write_text(yaml.safe_dump(data, sort_keys=False))
        return file_path
    return _write


# Test data fixtures for common scenarios

@pytest.fixture
def petstore_openapi30():
    """OpenAPI 3.0 description with an enum, models and four operations."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Pet Store", "version": "1.2.0"},
        "servers": [{"url": "https://api.example.com/v1"}],
        "paths": {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "summary": "List all pets",
                    "parameters": [
                        {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                        {"name": "status", "in": "query", "schema": {"$ref": "#/components/schemas/PetStatus"}},
                        {"name": "X-Request-Id", "in": "header", "schema": {"type": "string"}},
                    ],
                    "responses": {
                        "200": {
                            "description": "A list of pets",
                            "content": {
                                "application/json": {
                                    "schema": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}}
                                }
                            },
                        }
                    },
                },
                "post": {
                    "operationId": "createPet",
                    "requestBody": {
                        "required": True,
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/NewPet"}}},
                    },
                    "responses": {
                        "201": {
                            "description": "Created",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                        }
                    },
                },
            },
            "/pets/{petId}": {
                "parameters": [
                    {"name": "petId", "in": "path", "required": True, "schema": {"type": "integer"}},
                ],
                "get": {
                    "operationId": "getPet",
                    "responses": {
                        "200": {
                            "description": "A pet",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                        }
                    },
                },
                "delete": {
                    "operationId": "deletePet",
                    "responses": {"204": {"description": "Deleted"}},
                },
            },
        },
        "components": {
            "schemas": {
                "PetStatus": {
                    "type": "string",
                    "description": "Adoption status",
                    "enum": ["available", "pending", "sold"],
                },
                "NewPet": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "name": {"type": "string"},
                        "tag": {"type": "string", "enum": ["dog", "cat"]},
                    },
                },
                "Pet": {
                    "allOf": [
                        {"$ref": "#/components/schemas/NewPet"},
                        {
                            "type": "object",
                            "required": ["id"],
                            "properties": {
                                "id": {"type": "integer"},
                                "status": {"$ref": "#/components/schemas/PetStatus"},
                            },
                        },
                    ]
                },
            }
        },
    }


@pytest.fixture
def petstore_swagger2():
    """Swagger 2.0 description with one model and one operation."""
    return {
        "swagger": "2.0",
        "info": {"title": "Legacy Store", "version": "0.9"},
        "host": "legacy.example.com",
        "basePath": "/api",
        "schemes": ["https"],
        "paths": {
            "/orders/{orderId}": {
                "get": {
                    "operationId": "getOrder",
                    "parameters": [
                        {"name": "orderId", "in": "path", "required": True, "type": "string"},
                    ],
                    "responses": {"200": {"description": "An order", "schema": {"$ref": "#/definitions/Order"}}},
                }
            }
        },
        "definitions": {
            "OrderState": {"type": "string", "enum": ["open", "closed"]},
            "Order": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "string"},
                    "state": {"$ref": "#/definitions/OrderState"},
                    "total": {"type": "number"},
                },
            },
        },
    }


@pytest.fixture
def openapi30_file(write_description, petstore_openapi30):
    return write_description(petstore_openapi30)
