import unittest

from pagescan.core.interfaces.code_decoder_interface import BoundingBox, DetectionHit
from pagescan.core.scan.region_builder import RegionBuilder, buildRegions


def _hit(codeType, left, top, width, height, value=None):
    return DetectionHit(codeType, value, BoundingBox(left, top, width, height))


class TestRegionBuilder(unittest.TestCase):
    def test_empty_input_returns_empty_list(self) -> None:
        self.assertEqual(buildRegions([]), [])

    def test_hits_without_position_are_skipped(self) -> None:
        hits = [DetectionHit("QRCode", None, None), _hit("QRCode", 10, 10, 0, 40)]
        self.assertEqual(buildRegions(hits), [])

    def test_matrix_padding_is_uniform(self) -> None:
        regions = buildRegions([_hit("QRCode", 100, 100, 50, 50)])
        self.assertEqual(len(regions), 1)
        box = regions[0].boundingBox
        self.assertAlmostEqual(box.left, 90.0)
        self.assertAlmostEqual(box.top, 90.0)
        self.assertAlmostEqual(box.width, 70.0)
        self.assertAlmostEqual(box.height, 70.0)

    def test_linear_padding_has_extra_horizontal_margin(self) -> None:
        box = buildRegions([_hit("Code128", 100, 100, 100, 20)])[0].boundingBox
        self.assertAlmostEqual(box.left, 65.0)
        self.assertAlmostEqual(box.width, 170.0)
        self.assertAlmostEqual(box.top, 96.0)
        self.assertAlmostEqual(box.height, 28.0)

    def test_padding_override_by_type(self) -> None:
        builder = RegionBuilder(paddingByType={"QRCode": (0.0, 0.0)})
        box = builder.buildRegions([_hit("QRCode", 100, 100, 50, 50)])[0].boundingBox
        self.assertEqual(box, BoundingBox(100, 100, 50, 50))

    def test_regions_are_clamped_to_image(self) -> None:
        box = buildRegions([_hit("QRCode", 0, 0, 50, 50)], 100, 100)[0].boundingBox
        self.assertEqual((box.left, box.top), (0.0, 0.0))
        self.assertAlmostEqual(box.right, 60.0)

    def test_tiny_hits_grow_to_minimum_size(self) -> None:
        builder = RegionBuilder(minRegionSize=20)
        box = builder.buildRegions([_hit("QRCode", 50, 50, 2, 2)])[0].boundingBox
        self.assertAlmostEqual(box.width, 20.0)
        self.assertAlmostEqual(box.height, 20.0)
        self.assertAlmostEqual(box.left + box.width / 2, 51.0)

    def test_overlapping_same_type_regions_merge(self) -> None:
        hits = [_hit("QRCode", 100, 100, 50, 50), _hit("QRCode", 140, 140, 50, 50)]
        regions = buildRegions(hits)
        self.assertEqual(len(regions), 1)
        self.assertEqual(regions[0].sourceCount, 2)
        box = regions[0].boundingBox
        self.assertAlmostEqual(box.left, 90.0)
        self.assertAlmostEqual(box.right, 200.0)

    def test_merge_is_transitive(self) -> None:
        hits = [
            _hit("QRCode", 0, 0, 50, 50),
            _hit("QRCode", 200, 0, 50, 50),
            _hit("QRCode", 50, 0, 150, 50),
        ]
        regions = buildRegions(hits)
        self.assertEqual(len(regions), 1)
        self.assertEqual(regions[0].sourceCount, 3)

    def test_different_types_never_merge(self) -> None:
        hits = [_hit("QRCode", 100, 100, 50, 50), _hit("Code128", 110, 110, 80, 20)]
        regions = buildRegions(hits)
        self.assertEqual(sorted(r.codeTypeHint for r in regions), ["Code128", "QRCode"])

    def test_touching_regions_do_not_merge(self) -> None:
        builder = RegionBuilder(matrixPadding=(0.0, 0.0))
        hits = [_hit("QRCode", 0, 0, 50, 50), _hit("QRCode", 50, 0, 50, 50)]
        self.assertEqual(len(builder.buildRegions(hits)), 2)

    def test_padded_regions_overlapping_by_one_pixel_merge(self) -> None:
        # Padded to x 90..160 and 159..229
        hits = [_hit("QRCode", 100, 100, 50, 50), _hit("QRCode", 169, 100, 50, 50)]
        regions = buildRegions(hits)

        self.assertEqual(len(regions), 1)
        box = regions[0].boundingBox
        self.assertAlmostEqual(box.left, 90.0)
        self.assertAlmostEqual(box.top, 90.0)
        self.assertAlmostEqual(box.width, 139.0)
        self.assertAlmostEqual(box.height, 70.0)
        self.assertEqual(regions[0].sourceCount, 2)

    def test_padded_regions_one_pixel_apart_stay_separate(self) -> None:
        # Padded to x 90..160 and 161..231
        hits = [_hit("QRCode", 100, 100, 50, 50), _hit("QRCode", 171, 100, 50, 50)]
        self.assertEqual(len(buildRegions(hits)), 2)

    def test_decoded_hits_come_first_then_reading_order(self) -> None:
        hits = [
            _hit("QRCode", 300, 300, 40, 40),
            _hit("QRCode", 300, 10, 40, 40),
            _hit("QRCode", 10, 10, 40, 40),
            _hit("QRCode", 10, 600, 40, 40, value="known"),
        ]
        regions = buildRegions(hits)
        anchors = [r.anchor for r in regions]
        self.assertEqual(anchors, [(600, 10), (10, 10), (10, 300), (300, 300)])
        self.assertTrue(regions[0].hasDecodedValue)
        self.assertEqual([r.label for r in regions], ["QRCode_1", "QRCode_2", "QRCode_3", "QRCode_4"])

    def test_output_is_deterministic(self) -> None:
        hits = [
            _hit("Code128", 10, 400, 120, 30),
            _hit("QRCode", 200, 50, 60, 60),
            _hit("QRCode", 240, 90, 60, 60),
        ]
        self.assertEqual(buildRegions(hits, 800, 1000), buildRegions(hits, 800, 1000))

    def test_invalid_padding_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RegionBuilder(matrixPadding=(-0.1, 0.2))
        with self.assertRaises(ValueError):
            RegionBuilder(minRegionSize=-1)


if __name__ == "__main__":
    unittest.main()
