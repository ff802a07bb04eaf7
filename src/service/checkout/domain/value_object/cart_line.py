import attrs


@attrs.frozen
class CartLine:
    """One requested ticket tier and its quantity; never persisted"""

    ticket_id: int
    quantity: int
