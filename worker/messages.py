# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-18
# Description: messages.py
# -----------------------------------------------------------------------------
"""
Wire protocol between ModelWorkerChannel and EmbeddingWorker.

Every message crossing the thread boundary is a plain JSON-serializable dict
shaped as below; the pydantic models only validate and type them.

  request:  {id, type: init|generate_embedding|batch_generate|change_model|terminate, data}
  response: {id, type: init_complete|embedding_complete|batch_complete|model_changed|error|progress,
             success?, embedding?, results?, error?, status?}

Progress messages are not correlated to a request and may carry no id.
"""
import uuid
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def new_request_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class InitData(_Message):
    model_name: str = Field(..., alias="modelName")


class TextData(_Message):
    text: str


class BatchData(_Message):
    texts: List[str]
    item_ids: Optional[List[Optional[str]]] = Field(None, alias="itemIds")


class EmptyData(_Message):
    pass


class InitRequest(_Message):
    id: str
    type: Literal["init"] = "init"
    data: InitData


class GenerateEmbeddingRequest(_Message):
    id: str
    type: Literal["generate_embedding"] = "generate_embedding"
    data: TextData


class BatchGenerateRequest(_Message):
    id: str
    type: Literal["batch_generate"] = "batch_generate"
    data: BatchData


class ChangeModelRequest(_Message):
    id: str
    type: Literal["change_model"] = "change_model"
    data: InitData


class TerminateRequest(_Message):
    id: str
    type: Literal["terminate"] = "terminate"
    data: EmptyData = Field(default_factory=EmptyData)


WorkerRequest = Annotated[
    Union[InitRequest, GenerateEmbeddingRequest, BatchGenerateRequest, ChangeModelRequest, TerminateRequest],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class BatchItemResult(_Message):
    index: int
    success: bool
    id: Optional[str] = None
    embedding: Optional[List[float]] = None
    error: Optional[str] = None


class InitComplete(_Message):
    id: str
    type: Literal["init_complete"] = "init_complete"
    success: bool = True
    model_name: Optional[str] = Field(None, alias="modelName")


class EmbeddingComplete(_Message):
    id: str
    type: Literal["embedding_complete"] = "embedding_complete"
    success: bool = True
    embedding: List[float]


class BatchComplete(_Message):
    id: str
    type: Literal["batch_complete"] = "batch_complete"
    success: bool = True
    results: List[BatchItemResult]


class ModelChanged(_Message):
    id: str
    type: Literal["model_changed"] = "model_changed"
    success: bool = True
    model_name: str = Field(..., alias="modelName")


class ErrorResponse(_Message):
    id: Optional[str] = None
    type: Literal["error"] = "error"
    success: bool = False
    error: str = "Unknown error in embedding worker"


class Progress(_Message):
    id: Optional[str] = None
    type: Literal["progress"] = "progress"
    status: str
    completed: Optional[int] = None
    total: Optional[int] = None


WorkerResponse = Annotated[
    Union[InitComplete, EmbeddingComplete, BatchComplete, ModelChanged, ErrorResponse, Progress],
    Field(discriminator="type"),
]

_request_adapter: TypeAdapter = TypeAdapter(WorkerRequest)
_response_adapter: TypeAdapter = TypeAdapter(WorkerResponse)


def parse_request(payload: Dict[str, Any]):
    return _request_adapter.validate_python(payload)


def parse_response(payload: Dict[str, Any]):
    return _response_adapter.validate_python(payload)
