import unittest
import warnings
import numpy as np
import pandas as pd
from sklearn.metrics import adjusted_rand_score
from segmentation import (
    InvalidK,
    LowExpectedCount,
    SegmentationConfig,
    centroids_frame,
    diagnose,
    label_observations,
    run_segmentation,
)
from tests.conftest import ATTITUDE, SIX_ROWS, make_survey


class TestSegmentationPipeline(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.df, cls.truth = make_survey(seed=3)
        cls.config = SegmentationConfig(k=3, n_restarts=10, max_iter=50, seed=17)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", LowExpectedCount)
            cls.result = run_segmentation(cls.df, cls.config)

    def test_result_bundle(self):
        res = self.result
        self.assertEqual(len(res.labels), len(self.df))
        self.assertEqual(res.solution.k, 3)
        self.assertEqual(res.sizes().sum(), len(self.df))
        self.assertEqual(adjusted_rand_score(self.truth, res.labels), 1.0)
        self.assertIsNotNone(res.validation.anova)
        self.assertEqual(set(res.validation.chi_square), {"Female", "Income", "Degree"})

    def test_rerun_is_identical(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", LowExpectedCount)
            again = run_segmentation(self.df, self.config)
        np.testing.assert_array_equal(again.labels, self.result.labels)
        np.testing.assert_array_equal(again.solution.centroids, self.result.solution.centroids)
        self.assertEqual(again.solution.inertia, self.result.solution.inertia)

    def test_centroids_in_original_units_are_segment_means(self):
        cent = self.result.centroids(original_units=True)
        self.assertEqual(list(cent.columns), ["cluster"] + ATTITUDE)
        means = self.df[ATTITUDE].groupby(self.result.labels).mean()
        np.testing.assert_allclose(cent[ATTITUDE].to_numpy(), means.to_numpy(), atol=1e-9)
        scaled_cent = centroids_frame(self.result.scaled, self.result.solution, original_units=False)
        np.testing.assert_allclose(scaled_cent[ATTITUDE].to_numpy(), self.result.solution.centroids)

    def test_caller_frame_untouched(self):
        self.assertNotIn("cluster", self.df.columns)

    def test_k_is_required(self):
        with self.assertRaises(ValueError):
            run_segmentation(self.df, SegmentationConfig())
        with self.assertRaises(ValueError):
            run_segmentation(self.df)

    def test_default_config_with_explicit_k(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", LowExpectedCount)
            res = run_segmentation(self.df, k=3)
        self.assertEqual(res.solution.k, 3)
        self.assertEqual(len(res.solution.restart_inertias), 25)

    def test_k_argument_overrides_config(self):
        with self.assertRaises(InvalidK):
            run_segmentation(SIX_ROWS, self.config, k=7)


class TestDiagnose(unittest.TestCase):
    def test_curve_over_configured_range(self):
        df, _ = make_survey(n_per_segment=20, seed=1)
        curve = diagnose(df, SegmentationConfig(k_range=range(2, 6), n_restarts=5))
        self.assertEqual(curve.ks, [2, 3, 4, 5])
        self.assertTrue(all(p.silhouette is not None for p in curve))


class TestLabelObservations(unittest.TestCase):
    def test_adds_cluster_column_on_copy(self):
        labels = np.array([0, 1, 1, 0, 1, 0])
        out = label_observations(SIX_ROWS, labels)
        self.assertEqual(out["cluster"].tolist(), labels.tolist())
        self.assertNotIn("cluster", SIX_ROWS.columns)
        pd.testing.assert_frame_equal(out.drop(columns="cluster"), SIX_ROWS)

    def test_misaligned(self):
        with self.assertRaises(ValueError):
            label_observations(SIX_ROWS, [0, 1])


if __name__ == '__main__':
    unittest.main()
