import logging

from kubeship.logging_config import HealthCheckFilter, get_logging_config


def make_record(name, message):
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, None, None)


def test_health_check_requests_are_dropped():
    f = HealthCheckFilter()
    assert not f.filter(make_record("uvicorn.access", '10.0.0.1 - "GET /health HTTP/1.1" 200'))
    assert f.filter(make_record("uvicorn.access", '10.0.0.1 - "POST /deploy HTTP/1.1" 200'))
    assert f.filter(make_record("kubeship.main", "GET /health looked slow"))


def test_level_applies_to_kubeship_loggers():
    config = get_logging_config("debug")

    assert config["loggers"]["kubeship"]["level"] == "DEBUG"
    assert config["loggers"]["uvicorn.access"]["handlers"] == ["access"]
    assert config["loggers"]["kubernetes_asyncio"]["level"] == "WARNING"
