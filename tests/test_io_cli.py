"""
Tests for the image file adapters and the command-line interface.
"""
import json
import os
import tempfile
import unittest
import numpy as np
from PIL import Image
from canny_edge.cli import main, process_single_image
from canny_edge.io_utils import (
    buffer_to_array,
    load_bgr_buffer,
    load_edge_map,
    save_bgr_buffer,
)
from canny_edge.parameters import EdgeParameters

class TestIOUtils(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_load_gives_bgr_order(self):
        rgb = np.zeros((2, 3, 3), dtype=np.uint8)
        rgb[0, 0] = [255, 0, 0]  # red
        path = os.path.join(self.tmp.name, 'red.png')
        Image.fromarray(rgb).save(path)

        buffer, width, height = load_bgr_buffer(path)

        self.assertIsInstance(buffer, bytearray)
        self.assertEqual((width, height), (3, 2))
        self.assertEqual(len(buffer), 2 * 3 * 3)
        self.assertEqual(list(buffer[:3]), [0, 0, 255])

    def test_save_and_reload(self):
        bgr = np.random.default_rng(0).integers(0, 256, (4, 5, 3), dtype=np.uint8)
        buffer = bytearray(bgr.tobytes())
        path = os.path.join(self.tmp.name, 'out', 'image.png')

        save_bgr_buffer(buffer, 5, 4, path)
        reloaded, width, height = load_bgr_buffer(path)

        self.assertEqual((width, height), (5, 4))
        self.assertEqual(bytes(reloaded), bytes(buffer))
        np.testing.assert_array_equal(buffer_to_array(buffer, 5, 4), bgr[:, :, ::-1])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_bgr_buffer(os.path.join(self.tmp.name, 'missing.png'))

    def test_load_edge_map(self):
        edges = np.zeros((3, 3), dtype=np.uint8)
        edges[1, 1] = 255
        path = os.path.join(self.tmp.name, 'edges.png')
        Image.fromarray(edges).save(path)

        np.testing.assert_array_equal(load_edge_map(path), edges)

class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

        image = np.zeros((20, 20, 3), dtype=np.uint8)
        image[:, 10:] = 255
        self.input_path = os.path.join(self.tmp.name, 'step.png')
        Image.fromarray(image).save(self.input_path)
        self.output_dir = os.path.join(self.tmp.name, 'results')

    def test_process_single_image(self):
        results = process_single_image(self.input_path, self.output_dir,
                                       EdgeParameters(sigma=1.0))

        edges_path = os.path.join(self.output_dir, 'step_edges.png')
        self.assertTrue(os.path.isfile(edges_path))
        self.assertTrue(os.path.isfile(os.path.join(self.output_dir, 'step_metrics.json')))

        edges = load_edge_map(edges_path)
        self.assertEqual(edges.shape, (20, 20))
        self.assertTrue(set(np.unique(edges)) <= {0, 255})
        self.assertGreater(results['statistics']['edge_pixels'], 0)
        self.assertEqual(results['mask_size'], 5)

    def test_reference_comparison(self):
        process_single_image(self.input_path, self.output_dir)
        reference = os.path.join(self.output_dir, 'step_edges.png')

        results = process_single_image(self.input_path, os.path.join(self.tmp.name, 'again'),
                                       reference_path=reference)

        self.assertEqual(results['comparison_metrics']['f1_score'], 1.0)

    def test_main_writes_report(self):
        exit_code = main([self.input_path, '-o', self.output_dir,
                          '--sigma', '1.5', '--low-threshold', '20',
                          '--high-threshold', '60', '--plot'])

        self.assertEqual(exit_code, 0)
        with open(os.path.join(self.output_dir, 'step_metrics.json')) as f:
            report = json.load(f)
        self.assertEqual(report['parameters']['sigma'], 1.5)
        self.assertEqual(report['parameters']['low_threshold'], 20)
        self.assertTrue(os.path.isfile(os.path.join(self.output_dir, 'step_stages.png')))

    def test_main_raw_kernel(self):
        exit_code = main([self.input_path, '-o', self.output_dir, '--raw-kernel'])

        self.assertEqual(exit_code, 0)
        with open(os.path.join(self.output_dir, 'step_metrics.json')) as f:
            report = json.load(f)
        self.assertFalse(report['parameters']['normalize_kernel'])
        self.assertGreater(report['statistics']['edge_pixels'], 0)
        self.assertTrue(os.path.isfile(os.path.join(self.output_dir, 'step_edges.png')))

    def test_main_rejects_bad_sigma(self):
        with self.assertRaises(SystemExit):
            main([self.input_path, '-o', self.output_dir, '--sigma', '-2'])

    def test_main_missing_input(self):
        with self.assertRaises(SystemExit):
            main([os.path.join(self.tmp.name, 'nope.png'), '-o', self.output_dir])

if __name__ == '__main__':
    unittest.main()
