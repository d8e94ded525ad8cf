import logging

from eth_abi import decode

# transferWithComment(address,uint256,string)
TRANSFER_WITH_COMMENT_SELECTOR = "0xe1d6aceb"


def format_comment_string(function_call_hex: str) -> str:
    """Best-effort comment extraction from transaction input data.

    Returns "" for anything that is not a decodable transferWithComment call.
    """
    if not function_call_hex or len(function_call_hex) < 10:
        return ""
    if function_call_hex[:10].lower() != TRANSFER_WITH_COMMENT_SELECTOR:
        return ""
    try:
        data = bytes.fromhex(function_call_hex[10:])
        _, _, comment = decode(["address", "uint256", "string"], data)
    except Exception as e:
        logging.debug(f"Comment decode failed: {e}")
        return ""
    return comment
