from pos_api.routes import orders, pos, refunds

__all__ = ["orders", "pos", "refunds"]
