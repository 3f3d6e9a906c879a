import typing as t

ROOT_ID = 'root'


class TreeOptions(t.NamedTuple):
    # immediate child ids kept on the parent record
    store_children: bool = False
    store_children_count: bool = False
    store_ancestors_count: bool = True

    @property
    def tracks_children(self) -> bool:
        return self.store_children or self.store_children_count
