"""
Sign-byte encodings.

Amino documents are signed over canonical JSON: keys sorted at every level,
no whitespace, UTF-8, with ``&``, ``<`` and ``>`` written as unicode escapes.
Direct documents are signed over the protobuf serialisation of
``cosmos.tx.v1beta1.SignDoc``.
"""
import json
import logging
import threading
from typing import Any, Dict

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from .models import SignDoc, StdSignDoc

logger = logging.getLogger(__name__)

SIGN_DOC_PROTO_NAME = "cosmos.tx.v1beta1.SignDoc"

_ESCAPES = {ch: "\\u%04x" % ord(ch) for ch in "&<>"}

_sign_doc_class = None
_sign_doc_class_lock = threading.Lock()


def sign_doc_to_json(doc: StdSignDoc) -> Dict[str, Any]:
    """Wire form of an Amino sign doc, unset optional fee fields omitted"""
    return {
        "account_number": doc.account_number,
        "chain_id": doc.chain_id,
        "fee": doc.fee.model_dump(mode="json", exclude_none=True),
        "memo": doc.memo,
        "msgs": [m.model_dump(mode="json") for m in doc.msgs],
        "sequence": doc.sequence,
    }


def serialize_sign_doc(doc: StdSignDoc) -> bytes:
    """
    Canonical Amino JSON bytes for ``doc``.

    Returns:
        UTF-8 encoded JSON
    """
    text = json.dumps(
        sign_doc_to_json(doc),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    for ch, escaped in _ESCAPES.items():
        text = text.replace(ch, escaped)
    return text.encode("utf-8")


def _build_sign_doc_class():
    """Build the SignDoc message class from a descriptor in a private pool"""
    field_type = descriptor_pb2.FieldDescriptorProto
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="tailwind_connect/cosmos/tx/v1beta1/sign_doc.proto",
        package="cosmos.tx.v1beta1",
        syntax="proto3",
    )
    message = file_proto.message_type.add(name="SignDoc")
    for number, name, kind in (
        (1, "body_bytes", field_type.TYPE_BYTES),
        (2, "auth_info_bytes", field_type.TYPE_BYTES),
        (3, "chain_id", field_type.TYPE_STRING),
        (4, "account_number", field_type.TYPE_UINT64),
    ):
        message.field.add(
            name=name, number=number, type=kind, label=field_type.LABEL_OPTIONAL
        )

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    return message_factory.GetMessageClass(pool.FindMessageTypeByName(SIGN_DOC_PROTO_NAME))


def _get_sign_doc_class():
    global _sign_doc_class
    with _sign_doc_class_lock:
        if _sign_doc_class is None:
            _sign_doc_class = _build_sign_doc_class()
        return _sign_doc_class


def make_sign_bytes(doc: SignDoc) -> bytes:
    """
    Protobuf sign bytes for a Direct ``doc``.

    Proto3 omits default values, so empty byte fields and a zero account
    number do not appear in the output.
    """
    message = _get_sign_doc_class()(
        body_bytes=doc.body_bytes,
        auth_info_bytes=doc.auth_info_bytes,
        chain_id=doc.chain_id,
        account_number=doc.account_number,
    )
    return message.SerializeToString(deterministic=True)


def parse_sign_bytes(data: bytes) -> SignDoc:
    """Inverse of :func:`make_sign_bytes`"""
    message = _get_sign_doc_class()()
    message.ParseFromString(data)
    return SignDoc(
        body_bytes=message.body_bytes,
        auth_info_bytes=message.auth_info_bytes,
        chain_id=message.chain_id,
        account_number=message.account_number,
    )
