# -*- coding: utf-8 -*-

import json

import pytest

from uatree import ConfigError, config


def test_defaults():
    configuration = config.Configuration()

    assert configuration.request_timeout == 60
    assert configuration.discovery_timeout == 15
    assert configuration.max_depth == 10
    assert configuration.auto_accept is True
    assert configuration.session_name == "GetMachineClient"


def test_unknown_key():
    with pytest.raises(ConfigError):
        config.Configuration(timeout=3)


def test_load(tmp_path):
    path = tmp_path / "uatree.json"
    path.write_text(json.dumps({"max_depth": 4, "auto_accept": False}))

    configuration = config.load(str(path))

    assert configuration.max_depth == 4
    assert configuration.auto_accept is False
    assert configuration.request_timeout == 60


def test_load_invalid(tmp_path):
    path = tmp_path / "uatree.json"
    path.write_text("{roto")

    with pytest.raises(ConfigError):
        config.load(str(path))

    with pytest.raises(ConfigError):
        config.load(str(tmp_path / "no_existe.json"))


def test_load_not_an_object(tmp_path):
    path = tmp_path / "uatree.json"
    path.write_text("[1, 2]")

    with pytest.raises(ConfigError):
        config.load(str(path))


def test_from_environment(tmp_path, monkeypatch):
    monkeypatch.delenv(config.ENVIRONMENT_VARIABLE, raising=False)
    assert config.from_environment().max_depth == 10

    path = tmp_path / "uatree.json"
    path.write_text(json.dumps({"max_depth": 3}))
    monkeypatch.setenv(config.ENVIRONMENT_VARIABLE, str(path))

    assert config.from_environment().max_depth == 3


def test_has_certificate(tmp_path):
    certificate = tmp_path / "cert.der"
    private_key = tmp_path / "key.pem"

    configuration = config.Configuration(certificate=str(certificate), private_key=str(private_key))
    assert configuration.has_certificate() is False

    certificate.write_bytes(b"x")
    private_key.write_bytes(b"x")
    assert configuration.has_certificate() is True
