import unittest
import numpy as np
import pandas as pd
from segmentation import DegenerateColumn, FeatureMatrix, inverse_transform, standardize
from tests.conftest import ATTITUDE, SIX_ROWS, make_survey


class TestStandardize(unittest.TestCase):
    def test_columns_have_zero_mean_unit_sd(self):
        df, _ = make_survey()
        scaled = standardize(FeatureMatrix.from_frame(df))
        np.testing.assert_allclose(scaled.values.mean(axis=0), 0.0, atol=1e-9)
        np.testing.assert_allclose(scaled.values.std(axis=0, ddof=1), 1.0, atol=1e-9)
        self.assertEqual(scaled.columns, tuple(ATTITUDE))

    def test_uses_sample_standard_deviation(self):
        fm = FeatureMatrix(np.array([[1.0], [2.0], [3.0]]), ("x",))
        scaled = standardize(fm)
        # mean 2, sample sd 1
        np.testing.assert_allclose(scaled.values.ravel(), [-1.0, 0.0, 1.0])

    def test_constant_column_is_rejected(self):
        df = SIX_ROWS.copy()
        df["Style"] = 4
        with self.assertRaises(DegenerateColumn) as ctx:
            standardize(FeatureMatrix.from_frame(df))
        self.assertEqual(ctx.exception.columns, ("Style",))
        self.assertIsInstance(ctx.exception, ValueError)

    def test_needs_two_rows(self):
        with self.assertRaises(ValueError):
            standardize(FeatureMatrix.from_frame(SIX_ROWS.head(1)))

    def test_inverse_transform_restores_original_units(self):
        fm = FeatureMatrix.from_frame(SIX_ROWS)
        scaled = standardize(fm)
        np.testing.assert_allclose(inverse_transform(scaled, scaled.values), fm.values, atol=1e-12)

    def test_outputs_are_read_only_and_input_untouched(self):
        df = SIX_ROWS.copy()
        scaled = standardize(FeatureMatrix.from_frame(df))
        with self.assertRaises(ValueError):
            scaled.values[0, 0] = 99.0
        pd.testing.assert_frame_equal(df, SIX_ROWS)


class TestFeatureMatrix(unittest.TestCase):
    def test_missing_column(self):
        with self.assertRaises(ValueError):
            FeatureMatrix.from_frame(SIX_ROWS.drop(columns=["Wellness"]))

    def test_missing_values_rejected(self):
        df = SIX_ROWS.astype(float)
        df.loc[2, "TaskMgm"] = np.nan
        with self.assertRaises(ValueError):
            FeatureMatrix.from_frame(df)

    def test_row_order_preserved(self):
        fm = FeatureMatrix.from_frame(SIX_ROWS)
        np.testing.assert_array_equal(fm.values[1], [6, 6, 6, 6, 5, 3, 1])
        self.assertEqual(fm.shape, (6, 7))


if __name__ == '__main__':
    unittest.main()
