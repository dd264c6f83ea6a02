from typing import Dict, Iterator, List


def lineage(name: str) -> str:
    # E, E', E'' 同属一个家族
    return name.rstrip("'")


class OrderedNonTerminalSet:
    """
    非终结符的有序集合：
      - 第一个加入的名字就是开始符号
      - 派生出的新名字（如 E'）插到同家族最后一个成员之后，让 E, E', E'' 在遍历/展示时相邻
    """

    def __init__(self) -> None:
        self._order: List[str] = []
        self._index: Dict[str, int] = {}

    def add(self, name: str) -> None:
        if name in self._index:
            return

        position = len(self._order)
        if name != lineage(name):
            root = lineage(name)
            for i in range(len(self._order) - 1, -1, -1):
                if lineage(self._order[i]) == root:
                    position = i + 1
                    break

        self._order.insert(position, name)
        for i in range(position, len(self._order)):
            self._index[self._order[i]] = i

    def fresh_name(self, base: str) -> str:
        name = f"{base}'"
        while name in self._index:
            name += "'"
        return name

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __getitem__(self, i: int) -> str:
        return self._order[i]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"OrderedNonTerminalSet({self._order!r})"
