from .payload_rebuild import rebuild_all_memo_payloads

__all__ = [
    "rebuild_all_memo_payloads",
]
