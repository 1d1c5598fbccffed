"""
Benchmark: parse / validate / serialize throughput on synthetic levels.
Builds square caves of increasing size and reports per-stage wall time.
"""
import time

import numpy as np

from mmdat.parser import parse
from mmdat.serializer import serialize
from mmdat.validate import validate


def make_cave(size, seed=0):
    """Random cave: rock border, mostly ground, scattered walls and seams."""
    rng = np.random.RandomState(seed)
    tiles = rng.choice([1, 1, 1, 1, 26, 30, 34, 42, 46, 6], size=(size, size))
    tiles[0, :] = tiles[-1, :] = tiles[:, 0] = tiles[:, -1] = 38
    tiles[1, 1] = 1
    height = rng.randint(0, 20, size=(size, size))

    def grid(rows):
        return '\n'.join(','.join(str(v) for v in row) + ',' for row in rows)

    n_blocks = size // 2
    blocks = [f'{i}/EventDrill:{i % size},{(i * 7) % size}' for i in range(2, n_blocks)]
    wires = [f'1-{i}' for i in range(2, n_blocks)]
    return (
        f'info{{\nrowcount:{size}\ncolcount:{size}\nbiome:rock\n}}\n'
        f'tiles{{\n{grid(tiles)}\n}}\n'
        f'height{{\n{grid(height)}\n}}\n'
        'objectives{\nobjective:\n  type:collect\n  target:crystals\n  amount:50\n}\n'
        'buildings{\n1,1,BuildingToolStore_C,0,1\n}\n'
        'blocks{\n1/TriggerTimer:1,1,Tick,5,10,1\n' + '\n'.join(blocks + wires) + '\n}\n'
    )


def benchmark_size(size, n_iters=20):
    print(f"\n{'='*60}")
    print(f"  {size}x{size}  |  {n_iters} iterations")
    print(f"{'='*60}")

    text = make_cave(size)
    doc, errors = parse(text)
    assert not errors, errors[:3]

    t0 = time.time()
    for _ in range(n_iters):
        parse(text)
    t_parse = (time.time() - t0) / n_iters

    t0 = time.time()
    for _ in range(n_iters):
        issues = validate(doc)
    t_validate = (time.time() - t0) / n_iters

    t0 = time.time()
    for _ in range(n_iters):
        serialize(doc)
    t_serialize = (time.time() - t0) / n_iters

    print(f"  {len(text):,} bytes, {len(issues)} issue(s)")
    print(f"  parse:     {t_parse * 1e3:8.2f} ms")
    print(f"  validate:  {t_validate * 1e3:8.2f} ms")
    print(f"  serialize: {t_serialize * 1e3:8.2f} ms")
    return t_parse, t_validate, t_serialize


if __name__ == '__main__':
    results = {}
    for size in (25, 50, 100, 200):
        results[size] = benchmark_size(size)

    print(f"\n{'='*60}")
    print("  SUMMARY (ms)")
    print(f"{'='*60}")
    print(f"  {'size':>6}  {'parse':>8}  {'validate':>8}  {'serialize':>9}")
    for size, (p, v, s) in results.items():
        print(f"  {size:>6}  {p * 1e3:8.2f}  {v * 1e3:8.2f}  {s * 1e3:9.2f}")
