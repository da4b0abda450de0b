import numpy as np
from PIL import Image
import os

def generate_sample_images(output_dir='sample_data'):
    """Generate synthetic test images for the edge detector."""
    os.makedirs(output_dir, exist_ok=True)

    # 1. Vertical step: black left half, white right half
    step = np.zeros((128, 128, 3), dtype=np.uint8)
    step[:, 64:] = 255
    Image.fromarray(step).save(os.path.join(output_dir, 'vertical_step.png'))

    # 2. Colored checkerboard
    checker = np.zeros((160, 160, 3), dtype=np.uint8)
    for i in range(0, 160, 20):
        for j in range(0, 160, 20):
            if (i // 20 + j // 20) % 2 == 0:
                checker[i:i+20, j:j+20] = [200, 60, 30]
            else:
                checker[i:i+20, j:j+20] = [20, 90, 220]
    Image.fromarray(checker).save(os.path.join(output_dir, 'checkerboard.png'))

    # 3. Filled disc on gray background
    rows, cols = np.mgrid[0:200, 0:200]
    disc = np.full((200, 200, 3), 90, dtype=np.uint8)
    disc[(rows - 100)**2 + (cols - 100)**2 < 60**2] = [240, 240, 240]
    Image.fromarray(disc).save(os.path.join(output_dir, 'disc.png'))

    # 4. Uniform image
    uniform = np.full((100, 100, 3), 128, dtype=np.uint8)
    Image.fromarray(uniform).save(os.path.join(output_dir, 'uniform_image.png'))

    # 5. Noisy disc
    noisy = disc.astype(np.int16) + np.random.default_rng(0).normal(0, 25, disc.shape).astype(np.int16)
    Image.fromarray(np.clip(noisy, 0, 255).astype(np.uint8)).save(os.path.join(output_dir, 'noisy_disc.png'))

    print(f"Sample images generated in {output_dir}/ folder")

if __name__ == "__main__":
    generate_sample_images()
