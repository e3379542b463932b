import json

import pytest

from slsproject.logging import Logging, LoggingDetail


def test_detail_to_dict_uses_wire_names():
    detail = LoggingDetail(type="operation_log", logstore="internal-store")
    assert detail.to_dict() == {"type": "operation_log", "logstore": "internal-store"}


def test_logging_to_dict_uses_wire_names():
    logging = Logging(project="my-project", logging_details=[LoggingDetail("operation_log", "store")])
    assert logging.to_dict() == {
        "loggingProject": "my-project",
        "loggingDetails": [{"type": "operation_log", "logstore": "store"}],
    }


def test_round_trip_through_json():
    original = Logging(
        project="my-project",
        logging_details=[LoggingDetail("operation_log", "a"), LoggingDetail("consumergroup_log", "b")],
    )
    decoded = Logging.from_dict(json.loads(json.dumps(original.to_dict())))
    assert decoded == original


def test_from_dict_matches_keys_case_insensitively():
    decoded = Logging.from_dict(
        {"LoggingProject": "p", "loggingdetails": [{"Type": "t", "LOGSTORE": "s"}]}
    )
    assert decoded.project == "p"
    assert decoded.logging_details == [LoggingDetail("t", "s")]


def test_from_dict_missing_and_null_fields():
    decoded = Logging.from_dict({"loggingDetails": None})
    assert decoded == Logging()
    with_null = Logging.from_dict({"loggingProject": "p", "loggingDetails": [None]})
    assert with_null.logging_details == [None]
    assert with_null.to_dict()["loggingDetails"] == [None]


def test_from_dict_rejects_wrong_types():
    with pytest.raises(TypeError):
        Logging.from_dict(["not", "an", "object"])
    with pytest.raises(TypeError):
        Logging.from_dict({"loggingDetails": "x"})
    with pytest.raises(TypeError):
        LoggingDetail.from_dict({"type": 5})