"""Packed Fenwick auction: storage layout and gas model.

Models an order-book auction whose per-tick volume lives in a Fenwick tree
packed four 64-bit nodes per 256-bit storage word, priced with EVM-style
cold/warm storage costs, next to a bitmap-frontier alternative.

Modules:
    word_codec: Pack/unpack four uint64 lanes into one word.
    packed_store: Sparse packed Fenwick store with cold/warm bookkeeping.
    cost_model: Gas pricing of store operation logs.
    threshold_search: Binary-search clearing price and linear clear phase.
    models: Fenwick and frontier auction backends plus factory.
    config: Runtime configuration resolver.
    simulator: Seeded bid streams and backend comparison.
    reporting: DataFrame views of store and frontier state.
"""
