from .key_range import (
    KeyRange as KeyRange,
    prefix_range as prefix_range,
    printable as printable,
    strinc as strinc,
    with_suffix as with_suffix,
)
from .range_set import (
    RangeSet as RangeSet,
    covers as covers,
    has_overlap as has_overlap,
    is_contiguous as is_contiguous,
    partition as partition,
    sort_ranges as sort_ranges,
)
