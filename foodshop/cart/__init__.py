from foodshop.cart.state import CartLine, CartState

__all__ = ["CartLine", "CartState"]
