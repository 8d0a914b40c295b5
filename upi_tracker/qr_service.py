import base64
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

import qrcode
from PIL import Image
from qrcode.image.pil import PilImage

from upi_tracker.upi import build_upi_link

SIZE_PIXELS = {
    "small": 200,
    "medium": 300,
    "large": 400,
}
DEFAULT_SIZE = "medium"


@dataclass(frozen=True)
class BorderPreset:
    fill_color: Optional[str]
    back_color: Optional[str]
    stroke_width: int


BORDER_PRESETS = {
    # Sem sobrescrever as cores padrão do encoder
    "none": BorderPreset(fill_color=None, back_color=None, stroke_width=0),
    "simple": BorderPreset(fill_color="#2D3436", back_color="#ffffff", stroke_width=1),
    "rounded": BorderPreset(fill_color="#6C63FF", back_color="#ffffff", stroke_width=2),
    "fancy": BorderPreset(fill_color="#6C63FF", back_color="#ffffff", stroke_width=4),
}
DEFAULT_BORDER_STYLE = "simple"

QR_MARGIN = 1


@dataclass(frozen=True)
class GeneratedQRCode:
    data: str
    upi_url: str
    size: str
    border_style: str
    stroke_width: int


class QRCodeService:
    """Gera o QR Code de um link UPI como data URL PNG."""

    def generate(
        self,
        upi_id: str,
        name: Optional[str] = None,
        amount: Optional[str] = None,
        description: Optional[str] = None,
        size: Optional[str] = None,
        border_style: Optional[str] = None,
    ) -> GeneratedQRCode:
        size = size if size in SIZE_PIXELS else DEFAULT_SIZE
        border_style = border_style if border_style in BORDER_PRESETS else DEFAULT_BORDER_STYLE
        preset = BORDER_PRESETS[border_style]

        upi_url = build_upi_link(upi_id, name=name, amount=amount, note=description)
        png = self._render_png(upi_url, SIZE_PIXELS[size], preset)

        return GeneratedQRCode(
            data="data:image/png;base64," + base64.b64encode(png).decode("ascii"),
            upi_url=upi_url,
            size=size,
            border_style=border_style,
            stroke_width=preset.stroke_width,
        )

    def _render_png(self, data: str, pixel_size: int, preset: BorderPreset) -> bytes:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=1,
            border=QR_MARGIN,
            image_factory=PilImage,
        )
        qr.add_data(data)
        # DataOverflowError sobe sem tratamento quando o payload não cabe
        qr.make(fit=True)

        # Módulo inteiro mais próximo; o ajuste fino até a largura pedida é feito no resize
        qr.box_size = max(1, pixel_size // (qr.modules_count + 2 * QR_MARGIN))

        if preset.fill_color is None:
            imagem = qr.make_image()
        else:
            imagem = qr.make_image(fill_color=preset.fill_color, back_color=preset.back_color)

        # NEAREST mantém as duas cores exatas, sem antialiasing nas bordas dos módulos
        pil_image = imagem.get_image().resize((pixel_size, pixel_size), Image.Resampling.NEAREST)

        buffer = BytesIO()
        pil_image.save(buffer, format="PNG")
        return buffer.getvalue()
