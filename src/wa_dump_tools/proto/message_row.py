"""
Field specifications of the decrypted ``msgRowOpaqueData`` of a message.

Only the fields seen in real message rows are listed. Repeated fields
(18 pollOptions, 24 encPollVote) are not supported.
"""
from wa_dump_tools.lib.protobuf import Field, Nested, Scalar, decode, field_spec, DecodedRecord

MSG_SPEC = field_spec({
    1: Field("body", Scalar.STRING),
    3: Field("caption", Scalar.STRING),
    5: Field("lng", Scalar.DOUBLE),
    6: Field("isLive", Scalar.BOOL),
    7: Field("lat", Scalar.DOUBLE),
    8: Field("paymentAmount1000", Scalar.INT32),
    9: Field("paymentNoteMsgBody", Scalar.STRING),
    10: Field("canonicalUrl", Scalar.STRING),
    11: Field("matchedText", Scalar.STRING),
    12: Field("title", Scalar.STRING),
    13: Field("description", Scalar.STRING),
    14: Field("futureproofBuffer", Scalar.BYTES),
    15: Field("clientUrl", Scalar.STRING),
    16: Field("loc", Scalar.STRING),
    17: Field("pollName", Scalar.STRING),
    20: Field("pollSelectableOptionsCount", Scalar.UINT32),
    21: Field("messageSecret", Scalar.BYTES),
    22: Field("senderTimestampMs", Scalar.INT64),
    23: Field("pollUpdateParentKey", Scalar.STRING),
})

ROW_SPEC = field_spec({
    1: Field("currentMsg", Nested(MSG_SPEC)),
    2: Field("quotedMsg", Nested(MSG_SPEC)),
})


def decode_message_row(buffer: bytes) -> DecodedRecord:
    return decode(ROW_SPEC, buffer)
