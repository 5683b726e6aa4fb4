import time
import pandas as pd
from AdaptiveDualContour.dual_contour import HermiteDualContour
from AdaptiveDualContour.sdf_primitives import CircleSDF, SphereSDF, BoxSDF


def run_benchmark():
    surface_configs = {
        "Circle": (CircleSDF([0.0, 0.0], 1.0), [-2.0, -2.0], [4.0, 4.0]),
        "Square": (BoxSDF([0.1, 0.1], [0.7, 0.7]), [-2.0, -2.0], [4.0, 4.0]),
        "Sphere": (SphereSDF([0.0, 0.0, 0.0], 0.5), [-1.0] * 3, [2.0] * 3),
    }

    tolerances = [0.2, 0.1, 0.05]
    results = []

    print(f"{'Surface':<10} | {'atol':<6} | {'Leaves':<8} | {'Vertices':<8} | {'Time (s)':<10}")
    print("-" * 55)

    for name, (sdf, origin, extent) in surface_configs.items():
        for atol in tolerances:
            start_time = time.perf_counter()
            contour = HermiteDualContour(
                sdf, origin, extent, rtol=atol, atol=atol, surfcellmax=4 * atol
            )
            end_time = time.perf_counter()

            elapsed = end_time - start_time
            n_leaves = len(contour.leaves())
            n_vertices = contour.vertices().shape[0]
            results.append(
                {
                    "Surface": name,
                    "atol": atol,
                    "Leaves": n_leaves,
                    "Vertices": n_vertices,
                    "Time": elapsed,
                }
            )
            print(
                f"{name:<10} | {atol:<6} | {n_leaves:<8} | {n_vertices:<8} | {elapsed:.4f}"
            )

    return pd.DataFrame(results)


df = run_benchmark()
summary = df.pivot_table(index="Surface", columns="atol", values="Time")
print("\nBuild time per tolerance:")
print(summary)
