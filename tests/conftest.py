import pytest

from backing import SequenceBacking


class RecordingBacking(SequenceBacking):
    """
    A sequence backing that remembers every linear index it was asked for
    """

    def __init__(self, items):
        super().__init__(items)
        self.accessed = []

    def raw_element_at(self, index):
        self.accessed.append(index)
        return super().raw_element_at(index)


@pytest.fixture
def ten():
    return SequenceBacking(list(range(10))).view()


@pytest.fixture
def recording():
    return RecordingBacking(list(range(10)))
