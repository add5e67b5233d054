"""Repository query helpers."""

PAGE_SIZE = 500


def fetch_all(queryset, page_size: int = PAGE_SIZE) -> list:
    """Drain a Protean queryset page by page.

    Querysets are limited by default, so an unbounded read (every active
    subscriber, every slip of an order) walks the result with offset/limit.
    """
    items = []
    offset = 0
    while True:
        page = queryset.offset(offset).limit(page_size).all().items
        items.extend(page)
        if len(page) < page_size:
            return items
        offset += page_size
