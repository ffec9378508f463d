from .handle import SessionHandle, SettlementLatch, GuestPurchases, FLASH_KEY

__all__ = ["SessionHandle", "SettlementLatch", "GuestPurchases", "FLASH_KEY"]
