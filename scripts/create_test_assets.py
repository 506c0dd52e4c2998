from pathlib import Path

from PIL import Image, ImageDraw


REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURES_DIR = REPO_ROOT / "scripts" / "fixtures"

def create_test_assets():
    FIXTURES_DIR.mkdir(parents=True, exist_ok=True)

    # 1. Top: red shirt with white buttons, photographed on a white backdrop.
    # The buttons are enclosed by the shirt, so they must survive background removal.
    top = Image.new("RGB", (600, 600), (250, 250, 250))
    draw = ImageDraw.Draw(top)
    draw.polygon([(150, 80), (450, 80), (540, 220), (460, 260), (440, 540), (160, 540), (140, 260), (60, 220)], fill=(190, 30, 40))
    for y in (180, 280, 380, 480):
        draw.ellipse((290, y, 310, y + 20), fill=(255, 255, 255))
    out_top = FIXTURES_DIR / "top.png"
    top.save(out_top)
    print(f"Created {out_top}")

    # 2. Bottom: blue trousers; the gap between the legs is backdrop and is removed.
    bottom = Image.new("RGB", (500, 700), (255, 255, 255))
    draw = ImageDraw.Draw(bottom)
    draw.rectangle((120, 40, 380, 160), fill=(30, 50, 120))
    draw.polygon([(120, 160), (245, 160), (230, 660), (110, 660)], fill=(30, 50, 120))
    draw.polygon([(255, 160), (380, 160), (390, 660), (270, 660)], fill=(30, 50, 120))
    out_bottom = FIXTURES_DIR / "bottom.png"
    bottom.save(out_bottom)
    print(f"Created {out_bottom}")

    # 3. Shoes as a JPEG to exercise draft-mode downsampling.
    shoes = Image.new("RGB", (1600, 800), (245, 245, 245))
    draw = ImageDraw.Draw(shoes)
    draw.ellipse((150, 300, 750, 600), fill=(60, 40, 30))
    draw.ellipse((850, 300, 1450, 600), fill=(60, 40, 30))
    out_shoes = FIXTURES_DIR / "shoes.jpg"
    shoes.save(out_shoes, quality=95)
    print(f"Created {out_shoes}")

if __name__ == "__main__":
    create_test_assets()
