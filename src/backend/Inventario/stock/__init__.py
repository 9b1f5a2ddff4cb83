"""Stock module: lendable items, classrooms and the stock counters."""
