"""The eight customer-facing dealership tools."""

import asyncio
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import Field

from autoleads_agent.llm_core.exceptions import ToolExecutionError
from autoleads_agent.llm_core.logger import get_logger
from autoleads_agent.llm_core.tools.models import ExecutionContext, ToolDefinition
from autoleads_agent.llm_core.tools.registry import ToolRegistry
from .financing import (
    QUOTE_DOWN_PAYMENT_PERCENTS,
    QUOTE_TENURE_YEARS,
    annual_rate_for,
    format_rupiah,
    monthly_installment,
    plan_financing,
)
from .models import Car, Lead
from .stores import InventoryStore, LeadStore, MediaSender, SearchCriteria, ShowroomDirectory

logger = get_logger(__name__)

SEARCH_LIMIT = 5
DEFAULT_PHOTOS = 3
MAX_PHOTOS = 5
DEFAULT_BUSINESS_HOURS = "Senin - Sabtu: 09:00 - 18:00\nMinggu: 10:00 - 16:00"
DAY_NAMES = {
    "mon": "Senin",
    "tue": "Selasa",
    "wed": "Rabu",
    "thu": "Kamis",
    "fri": "Jumat",
    "sat": "Sabtu",
    "sun": "Minggu",
}
TEST_DRIVE_TAG = "test_drive_requested"
TRADE_IN_TAG = "trade_in_interest"


def _km(value: Optional[int]) -> str:
    return f"{value:,}".replace(",", ".") if value is not None else "N/A"


def _whole(value: Optional[float], name: str) -> Optional[int]:
    if value is None:
        return None
    if float(value) != int(value):
        raise ToolExecutionError(f"{name} must be a whole number.")
    return int(value)


class DealershipToolkit:
    """
    Tools a customer chat agent uses to serve one showroom's customers.

    Every tool acts on behalf of the tenant, lead and phone number carried by the
    :class:`ExecutionContext`. A car that cannot be found is reported as a normal
    result the model can relay; input the tools cannot act on raises
    :class:`ToolExecutionError`.
    """

    def __init__(
        self,
        inventory: InventoryStore,
        leads: LeadStore,
        showrooms: ShowroomDirectory,
        media: MediaSender,
        photo_delay: float = 1.0,
    ) -> None:
        self.inventory = inventory
        self.leads = leads
        self.showrooms = showrooms
        self.media = media
        self.photo_delay = photo_delay

    def register_into(self, registry: ToolRegistry) -> List[ToolDefinition]:
        """Register every dealership tool with ``registry``."""
        return [
            registry.register(tool)
            for tool in (
                self.search_inventory,
                self.get_car_details,
                self.send_car_photos,
                self.send_location_info,
                self.get_price_quote,
                self.get_financing_info,
                self.schedule_test_drive,
                self.check_trade_in,
            )
        ]

    async def search_inventory(
        self,
        context: ExecutionContext,
        brand: Annotated[
            Optional[str], Field(description='Car brand, e.g. "Toyota", "Honda". Case-insensitive, partial match.')
        ] = None,
        model: Annotated[
            Optional[str], Field(description='Car model, e.g. "Avanza", "Jazz". Case-insensitive, partial match.')
        ] = None,
        year: Annotated[Optional[int], Field(description="Exact manufacturing year, e.g. 2020.")] = None,
        min_price: Annotated[
            Optional[int], Field(description="Minimum price in Rupiah, e.g. 100000000 for 100 juta.")
        ] = None,
        max_price: Annotated[
            Optional[int], Field(description="Maximum price in Rupiah, e.g. 150000000 for 150 juta.")
        ] = None,
        transmission: Annotated[
            Optional[Literal["Manual", "Matic"]],
            Field(description='Transmission. Use "Matic" for automatic/AT/otomatis, "Manual" for manual.'),
        ] = None,
        color: Annotated[
            Optional[str], Field(description='Color in Indonesian, e.g. "Hitam", "Putih". Partial match.')
        ] = None,
        fuel_type: Annotated[
            Optional[str], Field(description='Fuel type, e.g. "Bensin", "Diesel", "Hybrid", "Electric".')
        ] = None,
        max_km: Annotated[Optional[int], Field(description="Maximum odometer reading in km, e.g. 50000.")] = None,
    ) -> str:
        """Search available cars in the showroom inventory by brand, model, year, price range, transmission, color, fuel type or mileage. Use this whenever the customer asks about cars with specific requirements, e.g. "mobil matic dibawah 100 juta" or "ada avanza 2020?"."""
        criteria = SearchCriteria(
            brand=brand,
            model=model,
            year=_whole(year, "year"),
            min_price=_whole(min_price, "min_price"),
            max_price=_whole(max_price, "max_price"),
            transmission=transmission,
            color=color,
            fuel_type=fuel_type,
            max_km=_whole(max_km, "max_km"),
        )
        cars = await self.inventory.search(context.tenant_id, criteria, SEARCH_LIMIT)
        if not cars:
            return "No cars found matching the criteria."

        entries = []
        for car in cars:
            features = ", ".join(car.key_features[:3]) or "N/A"
            entries.append(
                "\n".join(
                    [
                        f"Code: {car.display_code}",
                        f"Car: {car.name}",
                        f"Price: {format_rupiah(car.price)}",
                        f"Color: {car.color or 'N/A'}",
                        f"Transmission: {car.transmission or 'N/A'}",
                        f"Mileage: {_km(car.km)} km",
                        f"Fuel: {car.fuel_type or 'N/A'}",
                        f"Key Features: {features}",
                        f"Photos: {len(car.photos)} available",
                    ]
                )
            )
        return f"Found {len(cars)} car(s):\n\n" + "\n\n---\n\n".join(entries)

    async def get_car_details(
        self,
        context: ExecutionContext,
        display_code: Annotated[str, Field(description='The car display code, e.g. "A01" or "#A01".')],
    ) -> str:
        """Get the complete details of one car: specs, features, condition notes and price. Use this when the customer wants full information about a specific car or mentions its display code."""
        car = await self.inventory.find_by_code(context.tenant_id, display_code)
        if car is None:
            return f"Car with code {display_code} not found or not available."

        features = "\n  - ".join(car.key_features) or "N/A"
        return "\n".join(
            [
                f"Car Details for {car.display_code}:",
                "",
                f"Name: {car.name}",
                f"Price: {format_rupiah(car.price)}",
                f"Brand: {car.brand}",
                f"Model: {car.model}",
                f"Year: {car.year}",
                f"Color: {car.color or 'N/A'}",
                f"Transmission: {car.transmission or 'N/A'}",
                f"Mileage: {_km(car.km)} km",
                f"Fuel Type: {car.fuel_type or 'N/A'}",
                "",
                "Key Features:",
                f"  - {features}",
                "",
                f"Condition Notes: {car.condition_notes or 'No additional notes'}",
                f"Available Photos: {len(car.photos)}",
            ]
        )

    async def send_car_photos(
        self,
        context: ExecutionContext,
        display_code: Annotated[str, Field(description='The car display code, e.g. "A01" or "#A01".')],
        max_photos: Annotated[
            Optional[int], Field(description="Number of photos to send (1-5). Default is 3.")
        ] = DEFAULT_PHOTOS,
    ) -> str:
        """Immediately send photos of a car to the customer on WhatsApp. You MUST call this tool whenever the customer asks for photos ("kirim foto", "ada foto?", "gambarnya dong"); never promise photos without calling it. If you do not know the display code, call search_inventory first."""
        if not context.customer_phone:
            raise ToolExecutionError("No customer phone number is known for this conversation.")

        requested = _whole(max_photos, "max_photos") or DEFAULT_PHOTOS
        if requested < 1:
            raise ToolExecutionError("max_photos must be at least 1.")

        car = await self.inventory.find_by_code(context.tenant_id, display_code)
        if car is None:
            return f"Car with code {display_code} not found."
        if not car.photos:
            return f"No photos available for car {display_code}."

        photos = car.photos[: min(requested, MAX_PHOTOS)]
        logger.info(f"Sending {len(photos)} photo(s) for {car.display_code}")

        sent = 0
        for index, url in enumerate(photos):
            if index == 0:
                caption = f"Foto {car.name} ({car.display_code}) - 1/{len(photos)}"
            else:
                caption = f"Foto {index + 1}/{len(photos)}"

            if await self.media.send_image(context.customer_phone, url, caption):
                sent += 1
                if index < len(photos) - 1 and self.photo_delay > 0:
                    await asyncio.sleep(self.photo_delay)
            else:
                logger.warning(f"Failed to send photo {index + 1} of {car.display_code}")

        if sent:
            return f"Successfully sent {sent} photo(s) of {car.display_code} ({car.name}) to customer."
        return f"Failed to send photos for {car.display_code}. Please try again."

    async def send_location_info(self, context: ExecutionContext) -> str:
        """Get the showroom's address, Google Maps link, contact numbers and opening hours. Use this when the customer asks where the showroom is, when it is open, or how to visit ("dimana lokasi", "jam buka", "alamat")."""
        showroom = await self.showrooms.get(context.tenant_id)
        if showroom is None:
            return "Maaf, informasi lokasi tidak tersedia saat ini."

        if showroom.business_hours:
            hours = "\n".join(f"{DAY_NAMES.get(day, day)}: {time}" for day, time in showroom.business_hours.items())
        else:
            hours = DEFAULT_BUSINESS_HOURS

        lines = [f"Lokasi {showroom.name}", "", "Alamat:", showroom.address or "N/A"]
        if showroom.city:
            lines.append(showroom.city)
        lines += ["", "Jam Operasional:", hours, "", "Kontak:"]
        lines.append(f"Telepon: {showroom.phone or 'N/A'}")
        lines.append(f"WhatsApp: {showroom.whatsapp_number or 'N/A'}")
        if showroom.maps_url:
            lines += ["", "Google Maps:", showroom.maps_url]
        lines += ["", "Kami tunggu kunjungan Anda!"]
        return "\n".join(lines)

    async def get_price_quote(
        self,
        context: ExecutionContext,
        display_code: Annotated[str, Field(description='The car display code, e.g. "A01" or "#A01".')],
    ) -> str:
        """Get the price of a car with cash and credit options: down payments of 20%, 30% and 40% with a 3-year installment estimate. Use this when the customer asks about price, down payment, installments or negotiation ("berapa harganya", "DP berapa", "bisa kredit?")."""
        car = await self.inventory.find_by_code(context.tenant_id, display_code)
        if car is None:
            return f"Mobil dengan kode {display_code} tidak ditemukan atau tidak tersedia."

        rate = annual_rate_for(QUOTE_TENURE_YEARS)
        lines = [
            f"Informasi Harga {car.display_code}",
            car.name,
            "",
            f"Harga: {format_rupiah(car.price)}",
            "",
            "Opsi Pembayaran:",
            "",
            "1. Cash/Tunai",
            f"   Harga: {format_rupiah(car.price)}",
            "   (Harga bisa nego!)",
            "",
            "2. Kredit/Cicilan",
            "   Beberapa pilihan DP:",
            "",
        ]
        for percent in QUOTE_DOWN_PAYMENT_PERCENTS:
            down_payment = car.price * percent / 100
            installment = monthly_installment(car.price - down_payment, rate, QUOTE_TENURE_YEARS * 12)
            lines.append(f"   - DP {percent}% = {format_rupiah(down_payment)}")
            lines.append(f"     Cicilan {QUOTE_TENURE_YEARS} tahun: {format_rupiah(installment)}/bulan")
            lines.append("")
        lines += [
            "Catatan:",
            "- Tersedia tenor 1-5 tahun",
            "- Bunga kompetitif 8-12% per tahun",
            "- Proses approval cepat",
            "- Harga masih bisa nego!",
            "",
            "Mau kalkulasi dengan DP dan tenor tertentu? Silakan beritahu saya!",
        ]
        return "\n".join(lines)

    async def get_financing_info(
        self,
        car_price: Annotated[float, Field(description="Total car price in Rupiah.")],
        tenure: Annotated[int, Field(description="Loan tenure in years. Common options: 1, 2, 3, 4, 5.")],
        down_payment: Annotated[
            Optional[float], Field(description="Down payment amount in Rupiah. Use this OR down_payment_percent.")
        ] = None,
        down_payment_percent: Annotated[
            Optional[float], Field(description="Down payment as a percentage of the price, e.g. 30 for 30%.")
        ] = None,
    ) -> str:
        """Calculate a custom financing plan and monthly installment from a car price, tenure and optional down payment (amount or percentage, default 20%). For general price questions use get_price_quote instead."""
        tenure_years = _whole(tenure, "tenure")
        try:
            plan = plan_financing(car_price, tenure_years, down_payment, down_payment_percent)
        except ValueError as exc:
            raise ToolExecutionError(str(exc)) from exc

        return "\n".join(
            [
                "Financing Calculation:",
                "",
                f"Car Price: {format_rupiah(plan.car_price)}",
                f"Down Payment: {format_rupiah(plan.down_payment)} ({plan.down_payment_percent:.1f}%)",
                f"Loan Amount: {format_rupiah(plan.loan_amount)}",
                "",
                f"Tenure: {plan.tenure_years} year(s) ({plan.months} months)",
                f"Interest Rate: {plan.annual_rate * 100:.1f}% per year",
                f"Monthly Payment: {format_rupiah(plan.monthly_payment)}",
                "",
                f"Total Payment: {format_rupiah(plan.total_payment)}",
                f"Total Interest: {format_rupiah(plan.total_interest)}",
                "",
                "Note: These are approximate calculations. Actual rates may vary based on credit approval "
                "and financing institution.",
            ]
        )

    async def schedule_test_drive(
        self,
        context: ExecutionContext,
        display_code: Annotated[str, Field(description="The display code of the car to test drive.")],
        preferred_date: Annotated[str, Field(description='Preferred date in YYYY-MM-DD format, e.g. "2025-11-01".')],
        preferred_time: Annotated[
            Optional[str], Field(description='Preferred time, e.g. "morning", "afternoon" or "14:30".')
        ] = None,
        customer_name: Annotated[Optional[str], Field(description="Customer full name.")] = None,
        notes: Annotated[Optional[str], Field(description="Additional notes or special requests.")] = None,
    ) -> str:
        """Schedule a test drive for the customer and hand it to the sales team for confirmation. Use this when the customer wants to test drive, view or visit a specific car ("mau test drive", "lihat langsung", "booking test drive")."""
        lead = await self._require_lead(context)

        car = await self.inventory.find_by_code(context.tenant_id, display_code)
        if car is None:
            return f"Mobil dengan kode {display_code} tidak ditemukan atau tidak tersedia."

        timestamp = datetime.now(timezone.utc).isoformat()
        lead.add_note(
            "\n".join(
                [
                    f"[Test Drive Request - {timestamp}]",
                    f"Mobil: {car.display_code} ({car.name})",
                    f"Nama: {customer_name or 'Belum disebutkan'}",
                    f"Tanggal: {preferred_date}",
                    f"Waktu: {preferred_time or 'Belum ditentukan'}",
                    f"Catatan: {notes or 'Tidak ada'}",
                    "---",
                ]
            )
        )
        lead.status = "hot"
        lead.car_id = car.id
        lead.add_tag(TEST_DRIVE_TAG)
        if customer_name and not lead.customer_name:
            lead.customer_name = customer_name
        await self.leads.save(lead)
        logger.info(f"Test drive request added to lead #{lead.id}")

        lines = [
            "Test Drive Dijadwalkan!",
            "",
            f"Mobil: {car.display_code} ({car.name})",
            f"Tanggal: {preferred_date}",
            f"Waktu: {preferred_time or 'Akan dikonfirmasi'}",
        ]
        if customer_name:
            lines.append(f"Nama: {customer_name}")
        lines += [
            "",
            "Tim sales kami akan segera menghubungi Anda untuk konfirmasi jadwal test drive.",
            "",
            "Terima kasih sudah tertarik dengan mobil kami!",
        ]
        return "\n".join(lines)

    async def check_trade_in(
        self,
        context: ExecutionContext,
        current_car_brand: Annotated[Optional[str], Field(description="Brand of the car to trade in.")] = None,
        current_car_model: Annotated[Optional[str], Field(description="Model of the car to trade in.")] = None,
        current_car_year: Annotated[Optional[int], Field(description="Year of the car to trade in.")] = None,
    ) -> str:
        """Explain the trade-in (tukar tambah) service and process. Use this when the customer asks about trading in their old car or using it as a down payment ("tukar tambah", "jual mobil lama")."""
        lines = ["Ya, kami menerima tukar tambah mobil lama Anda!", ""]

        year = _whole(current_car_year, "current_car_year")
        description = " ".join(str(part) for part in (current_car_brand, current_car_model, year) if part)
        if description:
            lines += [
                f"Untuk {description} Anda:",
                "- Kami akan melakukan inspeksi menyeluruh",
                "- Penilaian biasanya 30-60 menit",
                "- Kami pertimbangkan kondisi, KM, riwayat servis",
                "",
            ]
        lines += [
            "Proses Tukar Tambah:",
            "1. Jadwalkan inspeksi (bisa langsung datang)",
            "2. Bawa mobil & dokumen (STNK, BPKB jika ada)",
            "3. Tim kami akan survey & beri estimasi harga",
            "4. Nilai tukar tambah bisa jadi DP mobil baru",
            "",
            "Mau jadwalkan inspeksi? Atau ada pertanyaan lain?",
        ]

        lead = await self.leads.get(context.lead_id) if context.lead_id is not None else None
        if lead is None:
            logger.warning("No lead to tag with trade-in interest.")
        else:
            lead.add_tag(TRADE_IN_TAG)
            await self.leads.save(lead)

        return "\n".join(lines)

    async def _require_lead(self, context: ExecutionContext) -> Lead:
        if context.lead_id is None:
            raise ToolExecutionError("No lead is associated with this conversation.")
        lead = await self.leads.get(context.lead_id)
        if lead is None:
            raise ToolExecutionError("The lead for this conversation could not be found.")
        return lead


def sample_inventory(tenant_id: int = 1) -> List[Car]:
    """A handful of cars for local runs of the chat CLI."""
    return [
        Car(
            id=1,
            tenant_id=tenant_id,
            display_code="A01",
            brand="Toyota",
            model="Avanza",
            year=2020,
            price=165_000_000,
            color="Hitam",
            transmission="Matic",
            km=45_000,
            fuel_type="Bensin",
            key_features=["Airbag ganda", "Kamera mundur", "Servis rutin"],
            photos=["https://example.com/a01-1.jpg", "https://example.com/a01-2.jpg"],
        ),
        Car(
            id=2,
            tenant_id=tenant_id,
            display_code="A02",
            brand="Honda",
            model="Jazz RS",
            year=2018,
            price=185_000_000,
            color="Putih",
            transmission="Matic",
            km=62_000,
            fuel_type="Bensin",
            key_features=["Velg racing", "Head unit Android"],
        ),
        Car(
            id=3,
            tenant_id=tenant_id,
            display_code="B01",
            brand="Daihatsu",
            model="Xenia",
            year=2019,
            price=140_000_000,
            color="Silver",
            transmission="Manual",
            km=80_000,
            fuel_type="Bensin",
        ),
    ]
