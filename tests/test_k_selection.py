import unittest
import numpy as np
from segmentation import FeatureMatrix, scan_k, silhouette_values, standardize
from tests.conftest import make_survey


class TestScanK(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        df, _ = make_survey(n_per_segment=30, seed=4)
        cls.scaled = standardize(FeatureMatrix.from_frame(df))
        cls.curve = scan_k(cls.scaled, range(1, 7), seed=8, n_restarts=10)

    def test_one_point_per_k(self):
        self.assertEqual(self.curve.ks, [1, 2, 3, 4, 5, 6])
        self.assertEqual(len(self.curve), 6)

    def test_k1_has_total_sum_of_squares_and_no_silhouette(self):
        first = self.curve.points[0]
        self.assertIsNone(first.silhouette)
        m, n = self.scaled.shape
        # centered unit-variance columns: total SS = (m - 1) * n
        self.assertAlmostEqual(first.inertia, (m - 1) * n, places=6)

    def test_silhouette_bounds(self):
        for p in self.curve.points[1:]:
            self.assertGreaterEqual(p.silhouette, -1.0)
            self.assertLessEqual(p.silhouette, 1.0)

    def test_silhouette_peaks_at_true_segment_count(self):
        best = max(self.curve.points[1:], key=lambda p: p.silhouette)
        self.assertEqual(best.k, 3)

    def test_inertia_drops_from_k1_to_k3(self):
        inertia = [p.inertia for p in self.curve]
        self.assertGreater(inertia[0], inertia[1])
        self.assertGreater(inertia[1], inertia[2])

    def test_to_frame(self):
        frame = self.curve.to_frame()
        self.assertEqual(list(frame.columns), ["k", "inertia", "silhouette"])
        self.assertEqual(len(frame), 6)


class TestSilhouetteValues(unittest.TestCase):
    def test_singleton_member_scores_zero(self):
        X = np.array([[0.0], [0.1], [0.2], [5.0], [5.1], [9.0]])
        labels = np.array([0, 0, 0, 1, 1, 2])
        s = silhouette_values(X, labels)
        self.assertEqual(s[5], 0.0)
        self.assertTrue(((s >= -1) & (s <= 1)).all())

    def test_matches_definition(self):
        X = np.array([[0.0], [1.0], [4.0], [6.0]])
        labels = np.array([0, 0, 1, 1])
        s = silhouette_values(X, labels)
        # point 0: a = 1, b = mean(4, 6) = 5
        self.assertAlmostEqual(s[0], (5 - 1) / 5)
        # point 2: a = 2, b = mean(4, 3) = 3.5
        self.assertAlmostEqual(s[2], (3.5 - 2) / 3.5)

    def test_all_singletons(self):
        X = np.arange(4, dtype=float).reshape(-1, 1)
        np.testing.assert_array_equal(silhouette_values(X, [0, 1, 2, 3]), np.zeros(4))

    def test_single_cluster_undefined(self):
        with self.assertRaises(ValueError):
            silhouette_values(np.arange(4, dtype=float).reshape(-1, 1), [0, 0, 0, 0])


if __name__ == '__main__':
    unittest.main()
