# Domain exceptions raised by the actions service layer.
# The controller layer catches these and converts them to HTTPException.


class ItemNotFoundError(Exception):
    def __init__(self, item_id) -> None:
        self.item_id = item_id
        super().__init__(f"Feed item {item_id} not found")
