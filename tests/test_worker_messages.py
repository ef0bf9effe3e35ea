# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-18
# Description: test_worker_messages.py
# -----------------------------------------------------------------------------
import pytest
from pydantic import ValidationError

from worker.messages import (
    BatchComplete,
    BatchData,
    BatchGenerateRequest,
    ErrorResponse,
    InitData,
    InitRequest,
    Progress,
    TerminateRequest,
    new_request_id,
    parse_request,
    parse_response,
)


def test_requests_serialize_to_camel_case_wire_shape():
    req = InitRequest(id="init-1", data=InitData(model_name="all-MiniLM-L6-v2"))
    assert req.to_wire() == {"id": "init-1", "type": "init", "data": {"modelName": "all-MiniLM-L6-v2"}}

    batch = BatchGenerateRequest(id="b-1", data=BatchData(texts=["a", "b"], item_ids=["x", None]))
    assert batch.to_wire()["data"] == {"texts": ["a", "b"], "itemIds": ["x", None]}

    assert TerminateRequest(id="t-1").to_wire() == {"id": "t-1", "type": "terminate", "data": {}}


def test_parse_dispatches_on_type():
    req = parse_request({"id": "e-1", "type": "generate_embedding", "data": {"text": "hello"}})
    assert req.data.text == "hello"

    resp = parse_response({"id": "b-1", "type": "batch_complete", "results": [
        {"index": 0, "success": True, "embedding": [0.1, 0.2]},
        {"index": 1, "success": False, "error": "boom"},
    ]})
    assert isinstance(resp, BatchComplete)
    assert [r.success for r in resp.results] == [True, False]

    err = parse_response({"id": "x", "type": "error", "success": False, "error": "bad"})
    assert isinstance(err, ErrorResponse)

    # progress messages are uncorrelated
    prog = parse_response({"type": "progress", "status": "loading"})
    assert isinstance(prog, Progress)
    assert prog.id is None


def test_unknown_type_is_rejected():
    with pytest.raises(ValidationError):
        parse_request({"id": "1", "type": "explode", "data": {}})
    with pytest.raises(ValidationError):
        parse_response({"id": "1", "type": "embedding_complete"})


def test_request_ids_are_unique_and_prefixed():
    ids = {new_request_id("embed") for _ in range(100)}
    assert len(ids) == 100
    assert all(i.startswith("embed-") for i in ids)
