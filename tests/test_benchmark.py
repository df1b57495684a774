import json

import matplotlib
matplotlib.use("Agg")

import benchmark
import visualize_benchmark


def test_benchmark_records_agree():
    buf = benchmark.synthetic_image(24)
    configs = [{"n_jobs": 1, "block_size": None}, {"n_jobs": 2, "block_size": 5}]
    records = benchmark.benchmark_pipeline(buf, configs=configs, n_runs=1, radius=1, stddev=1.0, verbose=False)
    assert len(records) == 2
    assert all(r["max_diff"] == 0 for r in records)
    assert records[0]["kernel_size"] == 3
    assert records[1]["block_size"] == 5


def test_results_round_trip_through_visualizer(tmp_path, capsys):
    records = [
        {"image_size": 64, "kernel_size": 7, "n_jobs": 1, "block_size": None,
         "python_seconds": 0.4, "std_seconds": 0.0, "max_diff": 0.0},
        {"image_size": 64, "kernel_size": 7, "n_jobs": 4, "block_size": 16,
         "python_seconds": 0.1, "std_seconds": 0.0, "max_diff": 0.0},
    ]
    path = tmp_path / "results.json"
    benchmark.save_results(records, path)
    data = visualize_benchmark.load_results(path)
    assert json.loads(path.read_text())["results"] == records

    organized = visualize_benchmark.organize_data(data)
    assert organized[64] == {"jobs=1 block=auto": 400.0, "jobs=4 block=16": 100.0}

    visualize_benchmark.print_summary(data)
    assert "4.00x" in capsys.readouterr().out

    plot = visualize_benchmark.plot_benchmark_results(data, tmp_path / "plot.png")
    assert (tmp_path / "plot.png").exists()
    assert plot == tmp_path / "plot.png"
